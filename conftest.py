"""Shared pytest fixtures for the gender paths dashboard."""

import math

import pandas as pd
import pytest

from gapviz.config import FEATURES, SECONDARY_FEMALE_COL, SECONDARY_MALE_COL


def _gender_row(region, decade, female, male):
    return {
        "region": region,
        "decade": decade,
        SECONDARY_FEMALE_COL: female,
        SECONDARY_MALE_COL: male,
    }


@pytest.fixture
def gender_raw():
    return pd.DataFrame(
        [
            _gender_row("South Asia", 2000, 40.0, 60.0),
            _gender_row("South Asia", 2000, None, None),
            _gender_row("North America", 2000, 90.0, 88.0),
            _gender_row("North America", 2000, 92.0, 88.0),
            _gender_row("Europe & Central Asia", 2000, 85.0, 80.0),
            _gender_row("Sub-Saharan Africa", 2000, 30.0, None),
            _gender_row("Sub-Saharan Africa", 2010, 35.0, 40.0),
            _gender_row("East Asia & Pacific", 2010, 70.0, 66.0),
            _gender_row("World", 2010, 60.0, 50.0),
            _gender_row("South Asia", None, 50.0, 50.0),
            _gender_row("South Asia", 1960, 10.0, 30.0),
        ]
    )


def life_row(region, year, **values):
    """One life-path row; ``values`` keys look like ``primary_female``."""
    row = {"region": region, "Year": year}
    for stage_key, columns in FEATURES.items():
        for gender, column in columns.items():
            row[column] = values.get(f"{stage_key}_{gender}", math.nan)
    return row


@pytest.fixture
def complete_life_row():
    return life_row(
        "South Asia",
        1990,
        primary_female=80.0,
        primary_male=90.0,
        secondary_female=50.0,
        secondary_male=50.5,
        tertiary_female=12.0,
        tertiary_male=10.0,
        fertility_both=3.46,
        lifeexp_female=64.0,
        lifeexp_male=62.0,
        survival65_female=70.0,
        survival65_male=65.0,
    )


@pytest.fixture
def life_raw(complete_life_row):
    return pd.DataFrame(
        [
            complete_life_row,
            life_row("Europe & Central Asia", 2000, primary_female=95.0),
            life_row("Europe & Central Asia", 1960, primary_female=70.0),
            life_row("North America", 2010),
        ]
    )


@pytest.fixture
def tiny_topology():
    """Two quantized squares sharing an edge, plus a point."""
    return {
        "type": "Topology",
        "transform": {"scale": [1, 1], "translate": [0, 0]},
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {
                        "type": "Polygon",
                        "arcs": [[0, 1]],
                        "id": "001",
                        "properties": {"name": "Left"},
                    },
                    {
                        "type": "Polygon",
                        "arcs": [[2, -1]],
                        "id": "002",
                        "properties": {"name": "Right"},
                    },
                    {"type": "Point", "coordinates": [3, 4], "properties": {"name": "Dot"}},
                    {"type": None, "properties": {"name": "Nowhere"}},
                ],
            }
        },
        "arcs": [
            # shared edge (1,0) -> (1,1)
            [[1, 0], [0, 1]],
            # (1,1) -> (0,1) -> (0,0) -> (1,0)
            [[1, 1], [-1, 0], [0, -1], [1, 0]],
            # (1,0) -> (2,0) -> (2,1) -> (1,1)
            [[1, 0], [1, 0], [0, 1], [-1, 0]],
        ],
    }
