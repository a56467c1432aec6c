"""Aggregation helpers: decade/region means and gender gaps.

This module turns the raw indicator tables into the summarized rows the
views bind to.  Records are grouped on one or two keys and each group is
reduced to the arithmetic mean of its finite values.  Missing data is
never an error: non-finite values are ignored, and groups that lack a
required mean are dropped rather than zero-filled, so an absent bar or
an empty life-path stage shows where the data runs out.

Every function is pure; callers own the resulting frames and recompute
them whenever the loaded data changes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import logging
import numpy as np
import pandas as pd

from .config import (
    DECADE_MAX,
    DECADE_MIN,
    DEFAULT_DECADE,
    FEATURE_COLUMNS,
    FOCUS_REGIONS,
    SECONDARY_FEMALE_COL,
    SECONDARY_MALE_COL,
)

logger = logging.getLogger(__name__)

GAP_COLUMNS: List[str] = [
    "decade",
    "region",
    "female_secondary",
    "male_secondary",
    "secondary_gap",
]

Domain = Tuple[float, float]


# ---------------------------------------------------------------------------
# Generic grouping
# ---------------------------------------------------------------------------


def to_finite(series: pd.Series) -> pd.Series:
    """Coerce to float, mapping unparsable values and +/-inf to NaN."""
    values = pd.to_numeric(series, errors="coerce").astype(float)
    return values.replace([np.inf, -np.inf], np.nan)


def _has_key(series: pd.Series) -> pd.Series:
    present = series.notna()
    if not pd.api.types.is_numeric_dtype(series):
        present &= series.astype(str).str.strip() != ""
    return present


def group_means(
    records: pd.DataFrame,
    keys: Sequence[str],
    value_fields: Sequence[str],
    *,
    required: Sequence[str] = (),
) -> pd.DataFrame:
    """Reduce each group of ``records`` to the mean of its finite values.

    Parameters
    ----------
    records : pd.DataFrame
        Loaded rows.  Not modified.
    keys : Sequence[str]
        One or two grouping columns.  Rows with an empty key are dropped.
    value_fields : Sequence[str]
        Columns to average.  Columns absent from ``records`` average to NaN.
    required : Sequence[str], optional
        Value fields whose mean must be finite for the group to be kept.

    Returns
    -------
    pd.DataFrame
        One row per surviving group in first-encounter order, with the key
        columns followed by ``value_fields``.
    """
    if not 1 <= len(keys) <= 2:
        raise ValueError("group_means supports one or two grouping keys.")
    unknown = [field for field in required if field not in value_fields]
    if unknown:
        raise ValueError(f"Required fields are not value fields: {unknown}")

    columns = list(keys) + list(value_fields)
    if records.empty or any(key not in records.columns for key in keys):
        return pd.DataFrame(columns=columns)

    mask = pd.Series(True, index=records.index, dtype=bool)
    for key in keys:
        mask &= _has_key(records[key])

    tmp = records.loc[mask, list(keys)].copy()
    for field in value_fields:
        if field in records.columns:
            tmp[field] = to_finite(records.loc[mask, field])
        else:
            tmp[field] = np.nan

    grouped = tmp.groupby(list(keys), sort=False, as_index=False)[list(value_fields)].mean()

    if required:
        grouped = grouped.dropna(subset=list(required))
    return grouped.reset_index(drop=True)[columns]


def signed_difference(a: pd.Series, b: pd.Series) -> pd.Series:
    """``a - b`` where both sides are finite, NaN otherwise."""
    a, b = to_finite(a), to_finite(b)
    return (a - b).where(a.notna() & b.notna())


# ---------------------------------------------------------------------------
# Gender gap (diverging bar chart)
# ---------------------------------------------------------------------------


def gender_gap_rows(raw: pd.DataFrame) -> pd.DataFrame:
    """Average secondary enrollment per (decade, region) and derive the gap.

    Only focus regions with a finite decade and at least one of the two
    secondary enrollment columns are considered.  Groups where either the
    female or male mean is missing are dropped.

    Returns
    -------
    pd.DataFrame
        Columns ``decade, region, female_secondary, male_secondary,
        secondary_gap`` where the gap is ``female - male`` (girls - boys).
    """
    needed = ["region", "decade", SECONDARY_FEMALE_COL, SECONDARY_MALE_COL]
    if raw.empty or any(col not in raw.columns for col in needed):
        if not raw.empty:
            missing = [col for col in needed if col not in raw.columns]
            logger.warning("Gender dataset lacks expected columns: %s", missing)
        return pd.DataFrame(columns=GAP_COLUMNS)

    decade = to_finite(raw["decade"])
    female = to_finite(raw[SECONDARY_FEMALE_COL])
    male = to_finite(raw[SECONDARY_MALE_COL])
    keep = (
        raw["region"].isin(sorted(FOCUS_REGIONS))
        & decade.notna()
        & (female.notna() | male.notna())
    )
    cleaned = raw.loc[keep].assign(decade=decade[keep].astype(int))

    grouped = group_means(
        cleaned,
        ["decade", "region"],
        [SECONDARY_FEMALE_COL, SECONDARY_MALE_COL],
        required=[SECONDARY_FEMALE_COL, SECONDARY_MALE_COL],
    ).rename(
        columns={
            SECONDARY_FEMALE_COL: "female_secondary",
            SECONDARY_MALE_COL: "male_secondary",
        }
    )
    grouped["secondary_gap"] = signed_difference(
        grouped["female_secondary"], grouped["male_secondary"]
    )
    grouped["decade"] = grouped["decade"].astype(int)

    logger.info("Decade-aggregated gap rows: %d", len(grouped))
    return grouped[GAP_COLUMNS]


def rows_for_decade(gaps: pd.DataFrame, decade: int) -> pd.DataFrame:
    """Rows of one decade sorted by gap descending; ties keep input order."""
    subset = gaps[gaps["decade"] == decade]
    return subset.sort_values(
        "secondary_gap", ascending=False, kind="stable"
    ).reset_index(drop=True)


def available_decades(
    gaps: pd.DataFrame, lo: int = DECADE_MIN, hi: int = DECADE_MAX
) -> List[int]:
    """Distinct decades present in ``gaps`` within ``[lo, hi]``, ascending."""
    if gaps.empty:
        return []
    decades = {int(d) for d in gaps["decade"].unique()}
    return sorted(d for d in decades if lo <= d <= hi)


def default_decade(
    decades: Sequence[int], preferred: int = DEFAULT_DECADE
) -> Optional[int]:
    """``preferred`` if available, otherwise the latest decade, or ``None``."""
    if not decades:
        return None
    return preferred if preferred in decades else max(decades)


def decade_label(decade: int) -> str:
    """Label a decade bucket as ``"Y-Y+9"``."""
    return f"{decade}-{decade + 9}"


def global_gap_domain(gaps: pd.DataFrame) -> Optional[Domain]:
    """Symmetric axis domain over every decade, or ``None`` without rows."""
    if gaps.empty:
        return None
    max_abs = float(gaps["secondary_gap"].abs().max())
    return (-max_abs, max_abs)


def local_gap_domain(rows: pd.DataFrame) -> Domain:
    """Symmetric axis domain over the displayed rows only.

    Falls back to ``(-1, 1)`` when the subset is empty or has no gap, so the
    axis never collapses.
    """
    max_abs = float(rows["secondary_gap"].abs().max()) if not rows.empty else 0.0
    if not np.isfinite(max_abs) or max_abs == 0:
        max_abs = 1.0
    return (-max_abs, max_abs)


@dataclass(frozen=True)
class GapChartState:
    """Selection and value-axis domain of the gender gap chart.

    The domain starts out global across all decades and is rescaled to the
    selected decade on every selection, including the first one.
    """

    decade: Optional[int] = None
    domain: Optional[Domain] = None

    @classmethod
    def bootstrap(cls, gaps: pd.DataFrame) -> "GapChartState":
        decades = available_decades(gaps)
        if not decades:
            logger.error("No valid decades in gender data; chart stays empty.")
            return cls()
        return cls(decade=default_decade(decades), domain=global_gap_domain(gaps))

    def select(self, gaps: pd.DataFrame, decade: int) -> "GapChartState":
        rows = rows_for_decade(gaps, decade)
        logger.info("Decade %s: %d regions", decade, len(rows))
        return replace(self, decade=decade, domain=local_gap_domain(rows))


# ---------------------------------------------------------------------------
# Life path
# ---------------------------------------------------------------------------


def life_path_rows(raw: pd.DataFrame) -> pd.DataFrame:
    """Average every life-path indicator per (region, Year).

    No indicator is required: a (region, Year) group exists even when all of
    its indicators are missing, and each stage decides whether it has
    enough data.
    """
    rows = group_means(raw, ["region", "Year"], FEATURE_COLUMNS)
    if not rows.empty:
        rows["Year"] = to_finite(rows["Year"])
        rows = rows.dropna(subset=["Year"])
        rows["Year"] = rows["Year"].astype(int)
    return rows.reset_index(drop=True)


def find_path_row(
    rows: pd.DataFrame, region: Optional[str], year: Optional[int]
) -> Optional[pd.Series]:
    """The row for ``(region, year)`` or ``None`` when there is none."""
    if rows.empty or region is None or year is None:
        return None
    match = rows[(rows["region"] == region) & (rows["Year"] == year)]
    if match.empty:
        return None
    return match.iloc[0]


def region_choices(rows: pd.DataFrame) -> List[str]:
    if rows.empty:
        return []
    return sorted(str(r) for r in rows["region"].unique())


def year_choices(
    rows: pd.DataFrame, lo: int = DECADE_MIN, hi: int = DECADE_MAX
) -> List[int]:
    if rows.empty:
        return []
    return sorted(int(y) for y in rows["Year"].unique() if lo <= y <= hi)
