"""
Configuration constants for the gender paths dashboard.
"""

import os
from pathlib import Path
from typing import Dict, FrozenSet, List, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
DATA_DIR: Path = Path(
    os.getenv("GAPVIZ_DATA_DIR", Path(__file__).resolve().parent.parent / "data")
)

GENDER_SOURCE: Path = DATA_DIR / "gender_clean_regions.csv"
LIFE_SOURCE: Path = DATA_DIR / "gender_regions_decades.csv"

# TopoJSON world boundaries (object "countries")
WORLD_ATLAS_SOURCE: str = os.getenv(
    "WORLD_ATLAS_SOURCE",
    "https://cdn.jsdelivr.net/npm/world-atlas@2/countries-110m.json",
)
WORLD_OBJECT: str = "countries"

DEFAULT_SEP: str = ","

LOG_LEVEL: str = os.getenv("GAPVIZ_LOG_LEVEL", "INFO")

# ======================================================
#  GENDER GAP (diverging bar chart)
# ======================================================
FOCUS_REGIONS: FrozenSet[str] = frozenset(
    {
        "Latin America & Caribbean",
        "Europe & Central Asia",
        "Sub-Saharan Africa",
        "East Asia & Pacific",
        "South Asia",
        "Middle East & North Africa",
        "North America",
    }
)

SECONDARY_FEMALE_COL: str = (
    "average_value_School enrollment, secondary, female (% net)"
)
SECONDARY_MALE_COL: str = "average_value_School enrollment, secondary, male (% net)"

DECADE_MIN: int = 1970
DECADE_MAX: int = 2010
DEFAULT_DECADE: int = 2010

# ======================================================
#  LIFE PATH (stage stepper)
# ======================================================
# Stage key -> gender ("female" / "male" / "both") -> exact CSV column
FEATURES: Dict[str, Dict[str, str]] = {
    "primary": {
        "female": "average_value_Adjusted net enrollment rate, primary, female (% of primary school age children)",
        "male": "average_value_Adjusted net enrollment rate, primary, male (% of primary school age children)",
    },
    "secondary": {
        "female": "average_value_School enrollment, secondary, female (% gross)",
        "male": "average_value_School enrollment, secondary, male (% gross)",
    },
    "tertiary": {
        "female": "average_value_School enrollment, tertiary, female (% gross)",
        "male": "average_value_School enrollment, tertiary, male (% gross)",
    },
    "fertility": {
        "both": "average_value_Fertility rate, total (births per woman)",
    },
    "lifeexp": {
        "female": "average_value_Life expectancy at birth, female (years)",
        "male": "average_value_Life expectancy at birth, male (years)",
    },
    "survival65": {
        "female": "average_value_Survival to age 65, female (% of cohort)",
        "male": "average_value_Survival to age 65, male (% of cohort)",
    },
}

FEATURE_COLUMNS: List[str] = [
    col for columns in FEATURES.values() for col in columns.values()
]

# (id, label) in narrative order
STAGE_DEFINITIONS: List[Tuple[str, str]] = [
    ("primary", "Primary School"),
    ("secondary", "Secondary School"),
    ("tertiary", "Higher Education"),
    ("family", "Family & Fertility"),
    ("longevity", "Long-term Health"),
]

GENDERS: Tuple[str, str] = ("female", "male")
DEFAULT_GENDER: str = "female"

# Differences below these bands read as "about the same"
ENROLLMENT_SAME_BAND: float = 1.0
LIFE_EXPECTANCY_SAME_BAND: float = 0.4

# ======================================================
#  COLORS / ANIMATION
# ======================================================
GIRLS_COLOR: str = "#ff82c6"
BOYS_COLOR: str = "#6aa5ff"
NEUTRAL_COLOR: str = "#9ca3af"

MINI_GIRLS_COLOR: str = "#ff8cbc"
MINI_BOYS_COLOR: str = "#7e9cff"
FERTILITY_TRACK_COLOR: str = "#f1e2ff"
FERTILITY_MARKER_COLOR: str = "#ff5e9c"
SURVIVAL_COLOR: str = "#3c8f5d"

BAR_TRANSITION_MS: int = 900
MINI_TRANSITION_MS: int = 700
TRANSITION_EASING: str = "cubic-out"

BAR_HEIGHT_PX: int = 40

# ======================================================
#  GLOBE
# ======================================================
GLOBE_INITIAL_ROTATION: Tuple[float, float] = (0.0, -20.0)
GLOBE_DRAG_SENSITIVITY: float = 0.4  # degrees per pixel
GLOBE_TICK_SECONDS: float = 0.1
GLOBE_VELOCITY: float = 0.12  # degrees per tick
DRAG_RELEASE_SECONDS: float = 1.5

COUNTRY_FILL: str = "red"
COUNTRY_STROKE: str = "white"
COUNTRY_STROKE_WIDTH: float = 0.4
WATER_COLOR: str = "#0b1d3a"
GRATICULE_COLOR: str = "#2a3f63"
