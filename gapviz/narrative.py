"""Narrative text and chart specs for each life-path stage."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

import pandas as pd

from .config import ENROLLMENT_SAME_BAND, FEATURES, LIFE_EXPECTANCY_SAME_BAND
from .stepper import ViewState

NO_DATA_TITLE: str = "No data for this path (yet)"
EMPTY_TITLE: str = "Life path"


@dataclass(frozen=True)
class GenderBarsSpec:
    """Girls vs boys bars for one enrollment stage."""

    title: str
    female: float
    male: float
    unit: str = "%"


@dataclass(frozen=True)
class FertilitySpec:
    value: float

    @property
    def track_max(self) -> float:
        return max(1.0, min(7.0, self.value + 1))


@dataclass(frozen=True)
class LongevitySpec:
    le_self: float
    le_other: Optional[float]
    surv_self: Optional[float]
    surv_other: Optional[float]


ChartSpec = Union[GenderBarsSpec, FertilitySpec, LongevitySpec]


@dataclass(frozen=True)
class StageView:
    title: str
    text: str
    chart: Optional[ChartSpec] = None
    has_data: bool = True


def _finite(value) -> Optional[float]:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def metric(row: pd.Series, stage_key: str, gender: str) -> Optional[float]:
    """Value of a stage indicator for ``gender``; ``None`` when missing."""
    column = FEATURES.get(stage_key, {}).get(gender)
    if column is None or column not in row.index:
        return None
    return _finite(row[column])


def _plural(gender: str) -> str:
    return "girls" if gender == "female" else "boys"


def _compare(diff: float, band: float, same: str, higher: str, lower: str) -> str:
    if abs(diff) < band:
        return same
    return higher if diff > 0 else lower


# ---------------------------------------------------------------------------
# Stage builders
# ---------------------------------------------------------------------------


def _primary(state: ViewState, row: pd.Series) -> StageView:
    title = "Stage 1 · Primary School"
    val_self = metric(row, "primary", state.gender)
    val_other = metric(row, "primary", state.other_gender)
    if val_self is None or val_other is None:
        return StageView(
            title,
            f"We don’t have enough data about primary school enrollment in "
            f"{state.region} in {state.year}. Try a different year or region.",
            has_data=False,
        )

    word = _compare(
        val_self - val_other, ENROLLMENT_SAME_BAND,
        "about the same chance", "a higher chance", "a lower chance",
    )
    label = "girl" if state.gender == "female" else "boy"
    text = (
        f"As a {label} in {state.region} in {state.year}, you have about "
        f"{val_self:.1f}% chance of being enrolled in primary school. "
        f"That’s {word} than {_plural(state.other_gender)}, who are at {val_other:.1f}%."
    )
    return StageView(title, text, _gender_bars(row, "primary", "Primary school enrollment"))


def _secondary(state: ViewState, row: pd.Series) -> StageView:
    title = "Stage 2 · Secondary School"
    val_self = metric(row, "secondary", state.gender)
    val_other = metric(row, "secondary", state.other_gender)
    if val_self is None or val_other is None:
        return StageView(
            title,
            "Secondary school data is patchy for this path, so we can’t say much "
            "about the gap here.",
            has_data=False,
        )

    word = _compare(
        val_self - val_other, ENROLLMENT_SAME_BAND,
        "about the same chance", "a better chance", "a worse chance",
    )
    text = (
        f"Moving into secondary school, {_plural(state.gender)} in {state.region} "
        f"in {state.year} are enrolled at about {val_self:.1f}%. That gives you "
        f"{word} of staying in school compared to {_plural(state.other_gender)} "
        f"({val_other:.1f}%)."
    )
    return StageView(title, text, _gender_bars(row, "secondary", "Secondary school enrollment"))


def _tertiary(state: ViewState, row: pd.Series) -> StageView:
    title = "Stage 3 · Higher Education"
    val_self = metric(row, "tertiary", state.gender)
    val_other = metric(row, "tertiary", state.other_gender)
    if val_self is None or val_other is None:
        return StageView(
            title,
            "We’re missing tertiary enrollment data for this path, which already "
            "tells a story: many regions still don’t track (or provide) detailed "
            "higher-education data by gender.",
            has_data=False,
        )

    word = _compare(
        val_self - val_other, ENROLLMENT_SAME_BAND,
        "about equally", "slightly more likely", "less likely",
    )
    text = (
        f"Only a smaller group reaches college or university. In {state.region} "
        f"in {state.year}, around {val_self:.1f}% of {_plural(state.gender)} are "
        f"enrolled in tertiary education, while {_plural(state.other_gender)} are "
        f"at {val_other:.1f}%. You’re {word} to continue studying beyond "
        f"secondary school."
    )
    return StageView(title, text, _gender_bars(row, "tertiary", "Tertiary enrollment"))


def _family(state: ViewState, row: pd.Series) -> StageView:
    title = "Stage 4 · Family & Fertility"
    fert = metric(row, "fertility", "both")
    if fert is None:
        return StageView(
            title,
            "We don’t have solid fertility data for this path, so we skip this "
            "part of the story.",
            has_data=False,
        )

    text = (
        f"In {state.region} in {state.year}, families have about {fert:.1f} "
        f"children on average. This statistic is measured per woman, but it "
        f"shapes daily life for everyone: how many siblings you might have, how "
        f"soon people start families, and how easy it is to stay in school or work."
    )
    return StageView(title, text, FertilitySpec(fert))


def _longevity(state: ViewState, row: pd.Series) -> StageView:
    title = "Stage 5 · Long-term Health"
    le_self = metric(row, "lifeexp", state.gender)
    le_other = metric(row, "lifeexp", state.other_gender)
    surv_self = metric(row, "survival65", state.gender)
    surv_other = metric(row, "survival65", state.other_gender)
    if le_self is None or surv_self is None:
        return StageView(
            title,
            "Health and survival data aren’t available here, so we can’t close "
            "the story with life expectancy for this path.",
            has_data=False,
        )

    label = "girl" if state.gender == "female" else "boy"
    text = (
        f"By the end of the path, a typical {label} in {state.region} in "
        f"{state.year} can expect to live to about {le_self:.1f} years old. "
        f"Around {surv_self:.1f}% make it to age 65."
    )
    if le_other is not None and surv_other is not None:
        le_word = _compare(
            le_self - le_other, LIFE_EXPECTANCY_SAME_BAND,
            "about the same life expectancy", "a slightly longer life",
            "a slightly shorter life",
        )
        text += (
            f" Compared to {_plural(state.other_gender)}, that means {le_word} "
            f"(they are at {le_other:.1f} years and {surv_other:.1f}% reach 65)."
        )
    return StageView(title, text, LongevitySpec(le_self, le_other, surv_self, surv_other))


def _gender_bars(row: pd.Series, stage_key: str, title: str) -> Optional[GenderBarsSpec]:
    female = metric(row, stage_key, "female")
    male = metric(row, stage_key, "male")
    if female is None or male is None:
        return None
    return GenderBarsSpec(title=title, female=female, male=male)


_BUILDERS = {
    "primary": _primary,
    "secondary": _secondary,
    "tertiary": _tertiary,
    "family": _family,
    "longevity": _longevity,
}


def no_data_view(state: ViewState) -> StageView:
    return StageView(
        NO_DATA_TITLE,
        f"We don't have enough data for {state.region} in {state.year}. "
        f"Try a different year or region.",
        has_data=False,
    )


def empty_view() -> StageView:
    """Placeholder shown while nothing is selected (no life data loaded)."""
    return StageView(EMPTY_TITLE, "", has_data=False)


def stage_view(state: ViewState, row: Optional[pd.Series]) -> StageView:
    """Narrative for the current stage of ``state``.

    ``row`` is the aggregated (region, year) row, or ``None`` when the
    selection has no data; in that case every stage yields the same
    "no data" view.  An empty selection yields the blank placeholder.
    """
    if state.region is None or state.year is None:
        return empty_view()
    if row is None:
        return no_data_view(state)
    return _BUILDERS[state.stage.id](state, row)
