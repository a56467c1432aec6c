"""gapviz package initializer.

This package contains the data and view-state modules used by the Shiny
application.  Modules include dataset loading, aggregation, the life-path
stage stepper, globe rotation state and plotting helpers.  See individual
module docstrings for details.
"""
