from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pandas as pd
import plotly.graph_objects as go

from .aggregate import decade_label
from .config import (
    BAR_HEIGHT_PX,
    BAR_TRANSITION_MS,
    BOYS_COLOR,
    COUNTRY_FILL,
    COUNTRY_STROKE,
    COUNTRY_STROKE_WIDTH,
    FERTILITY_MARKER_COLOR,
    FERTILITY_TRACK_COLOR,
    GIRLS_COLOR,
    GRATICULE_COLOR,
    MINI_BOYS_COLOR,
    MINI_GIRLS_COLOR,
    MINI_TRANSITION_MS,
    NEUTRAL_COLOR,
    SURVIVAL_COLOR,
    TRANSITION_EASING,
    WATER_COLOR,
)
from .narrative import ChartSpec, FertilitySpec, GenderBarsSpec, LongevitySpec


# ============================================================
# Configuration / constants
# ============================================================

GAP_MARGIN: dict[str, int] = {"t": 40, "r": 40, "b": 70, "l": 200}
GAP_AXIS_TITLE = "Gender gap (girls - boys), percentage points"

HOVER_TEMPLATE_GAP = "%{hovertext}<extra></extra>"

MINI_MARGIN: dict[str, int] = {"t": 28, "r": 10, "b": 24, "l": 70}
LIFE_AXIS_FLOOR = 40.0


# ============================================================
# Helper functions
# ============================================================


def gap_color(gap: float) -> str:
    """Girls color for a gap of zero or more, boys color below zero."""
    return GIRLS_COLOR if gap >= 0 else BOYS_COLOR


def gap_direction(gap: float) -> Tuple[str, str]:
    """Direction sentence and its color for a signed gap."""
    if gap > 0:
        return "Gap favors girls", GIRLS_COLOR
    if gap < 0:
        return "Gap favors boys", BOYS_COLOR
    return "No gender gap", NEUTRAL_COLOR


def gap_hover_text(row: pd.Series) -> str:
    gap = float(row["secondary_gap"])
    direction, color = gap_direction(gap)
    return (
        f"<b><u>{row['region']}</u></b><br>"
        f"<i>Decade:</i> {decade_label(int(row['decade']))}<br>"
        f"<i>Girls in secondary:</i> {row['female_secondary']:.1f}%<br>"
        f"<i>Boys in secondary:</i> {row['male_secondary']:.1f}%<br>"
        f"<i>Gap (girls - boys):</i> {abs(gap):.2f} percentage points<br>"
        f"<span style='color:{color}'><b>{direction}</b></span>"
    )


def gap_chart_height(n_rows: int) -> int:
    return n_rows * BAR_HEIGHT_PX + GAP_MARGIN["t"] + GAP_MARGIN["b"] + 30


def _transition(duration: int) -> dict:
    return {"duration": duration, "easing": TRANSITION_EASING}


# ============================================================
# Bar transition plan (enter / update / exit)
# ============================================================


@dataclass(frozen=True)
class BarTransition:
    """How the gap bars move from one bound state to the next.

    ``start`` is applied instantly, ``end`` is animated over ``duration``
    milliseconds and ``final`` drops the exiting bars once the animation is
    over.  Every frame holds gap rows plus a ``value`` column with the bar
    extent to draw.
    """

    entering: List[str]
    updating: List[str]
    exiting: List[str]
    start: pd.DataFrame
    end: pd.DataFrame
    final: pd.DataFrame
    duration: int


def plan_bar_transition(
    previous: Optional[pd.DataFrame], current: pd.DataFrame, *, animate: bool = True
) -> BarTransition:
    """
    Key bars by region and plan the enter/update/exit animation.

    Entering bars grow from zero extent, exiting bars shrink to zero and are
    then removed.  When animating, persisting bars also restart from zero so
    the whole decade grows in together.

    Parameters
    ----------
    previous : pd.DataFrame or None
        Rows currently on screen, ``None`` on the first draw.
    current : pd.DataFrame
        Rows to show, already sorted for display.
    animate : bool, default True
        If False the transition is instantaneous (duration 0).
    """
    if previous is None:
        previous = current.iloc[0:0]

    prev_regions = list(previous["region"])
    cur_regions = list(current["region"])
    entering = [r for r in cur_regions if r not in prev_regions]
    updating = [r for r in cur_regions if r in prev_regions]
    exiting = [r for r in prev_regions if r not in cur_regions]

    prev_gap = dict(zip(previous["region"], previous["secondary_gap"]))
    outgoing = previous[previous["region"].isin(exiting)]

    start_current = current.assign(
        value=[
            0.0 if animate or region in entering else float(prev_gap[region])
            for region in cur_regions
        ]
    )
    start = pd.concat(
        [start_current, outgoing.assign(value=outgoing["secondary_gap"].astype(float))],
        ignore_index=True,
    )
    end = pd.concat(
        [
            current.assign(value=current["secondary_gap"].astype(float)),
            outgoing.assign(value=0.0),
        ],
        ignore_index=True,
    )
    final = current.assign(value=current["secondary_gap"].astype(float)).reset_index(
        drop=True
    )

    return BarTransition(
        entering=entering,
        updating=updating,
        exiting=exiting,
        start=start,
        end=end,
        final=final,
        duration=BAR_TRANSITION_MS if animate else 0,
    )


PendingExit = Tuple[BarTransition, float]


def schedule_bar_exit(plan: BarTransition, now: float) -> Optional[PendingExit]:
    """Cleanup owed by the latest transition, replacing any earlier one.

    Returns ``(plan, deadline)`` when ``plan`` leaves exiting bars on screen,
    ``None`` otherwise.  ``now`` and the deadline are in seconds.
    """
    if not plan.exiting:
        return None
    return plan, now + plan.duration / 1000


def exit_remaining(pending: PendingExit, now: float) -> float:
    """Seconds until ``pending`` may drop its exiting bars (0 once due)."""
    return max(0.0, pending[1] - now)


def bar_trace_update(frame: pd.DataFrame) -> dict:
    """Trace properties drawing ``frame`` as horizontal diverging bars."""
    return {
        "x": [float(v) for v in frame["value"]],
        "y": list(frame["region"]),
        "marker": {"color": [gap_color(float(g)) for g in frame["secondary_gap"]]},
        "hovertext": [gap_hover_text(row) for _, row in frame.iterrows()],
    }


def gap_layout_update(frame: pd.DataFrame, domain: Tuple[float, float]) -> dict:
    return {
        "height": gap_chart_height(len(frame)),
        "xaxis": {"range": list(domain)},
        "yaxis": {"categoryorder": "array", "categoryarray": list(frame["region"])},
    }


# ============================================================
# Main plotting functions
# ============================================================


def create_gap_chart(
    rows: pd.DataFrame,
    domain: Tuple[float, float],
    *,
    animate: bool = False,
) -> go.Figure:
    """
    Diverging bar chart of the girls - boys secondary enrollment gap.

    Parameters
    ----------
    rows : pd.DataFrame
        Gap rows of one decade, sorted by gap descending.
    domain : Tuple[float, float]
        Symmetric value-axis range.
    animate : bool, default False
        Whether layout changes on the returned figure animate.

    Returns
    -------
    go.Figure
        One horizontal bar per region, largest gap on top.
    """
    frame = rows.assign(value=rows["secondary_gap"].astype(float))

    fig = go.Figure(
        go.Bar(
            orientation="h",
            hovertemplate=HOVER_TEMPLATE_GAP,
            showlegend=False,
            **bar_trace_update(frame),
        )
    )
    fig.update_layout(**gap_layout_update(frame, domain))
    fig.update_xaxes(
        title_text=GAP_AXIS_TITLE,
        ticksuffix=" pts",
        nticks=7,
        zeroline=True,
        zerolinecolor="#cbd5f5",
    )
    fig.update_yaxes(autorange="reversed")
    fig.update_layout(
        bargap=0.2,
        margin=GAP_MARGIN,
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        hoverlabel=dict(bgcolor="white", bordercolor="#ddd", font=dict(size=12)),
        transition=_transition(BAR_TRANSITION_MS if animate else 0),
    )
    return fig


def create_gender_bars(spec: GenderBarsSpec) -> go.Figure:
    """Girls vs boys mini bar chart for an enrollment stage."""
    labels = ["Girls", "Boys"]
    values = [spec.female, spec.male]
    x_max = max(values) or 1.0

    fig = go.Figure(
        go.Bar(
            orientation="h",
            x=values,
            y=labels,
            marker=dict(color=[MINI_GIRLS_COLOR, MINI_BOYS_COLOR]),
            text=[f"{v:.1f}{spec.unit}" for v in values],
            textposition="outside",
            cliponaxis=False,
            hoverinfo="skip",
        )
    )
    fig.update_xaxes(range=[0, x_max * 1.15], visible=False)
    fig.update_yaxes(autorange="reversed", ticks="", showline=False)
    fig.update_layout(
        title=dict(text=spec.title, font=dict(size=11, color="#555"), x=0),
        width=340,
        height=110,
        bargap=0.3,
        margin=MINI_MARGIN,
        plot_bgcolor="rgba(0,0,0,0)",
        transition=_transition(MINI_TRANSITION_MS),
    )
    return fig


def create_fertility_chart(spec: FertilitySpec) -> go.Figure:
    """Children per woman shown as a filled track with a marker."""
    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            orientation="h",
            x=[spec.track_max],
            y=[""],
            marker=dict(color=FERTILITY_TRACK_COLOR),
            hoverinfo="skip",
        )
    )
    fig.add_trace(
        go.Bar(
            orientation="h",
            x=[spec.value],
            y=[""],
            marker=dict(color=MINI_GIRLS_COLOR),
            hoverinfo="skip",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=[spec.value],
            y=[""],
            mode="markers+text",
            marker=dict(size=12, color=FERTILITY_MARKER_COLOR),
            text=[f"{spec.value:.1f} kids"],
            textposition="top center",
            hoverinfo="skip",
        )
    )
    fig.update_xaxes(range=[0, spec.track_max])
    fig.update_yaxes(visible=False)
    fig.update_layout(
        title=dict(
            text="Average number of children per woman",
            font=dict(size=11, color="#555"),
            x=0,
        ),
        barmode="overlay",
        showlegend=False,
        width=340,
        height=110,
        margin={"t": 28, "r": 16, "b": 28, "l": 40},
        plot_bgcolor="rgba(0,0,0,0)",
        transition=_transition(MINI_TRANSITION_MS),
    )
    return fig


def create_longevity_chart(spec: LongevitySpec) -> go.Figure:
    """Life expectancy bars with survival-to-65 dots on a 0-100 overlay."""
    labels: List[str] = ["You"]
    life: List[float] = [spec.le_self]
    survival: List[Optional[float]] = [spec.surv_self]
    if spec.le_other is not None:
        labels.append("Other")
        life.append(spec.le_other)
        survival.append(spec.surv_other)

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            orientation="h",
            x=[v - LIFE_AXIS_FLOOR for v in life],
            base=LIFE_AXIS_FLOOR,
            y=labels,
            marker=dict(color=[MINI_GIRLS_COLOR, MINI_BOYS_COLOR][: len(labels)]),
            text=[f"{v:.1f} yrs" for v in life],
            textposition="outside",
            cliponaxis=False,
            hoverinfo="skip",
        )
    )

    dots = [(label, s) for label, s in zip(labels, survival) if s is not None]
    if dots:
        fig.add_trace(
            go.Scatter(
                x=[s for _, s in dots],
                y=[label for label, _ in dots],
                mode="markers",
                marker=dict(size=10, color=SURVIVAL_COLOR, line=dict(color="#fff", width=1.5)),
                xaxis="x2",
                name="Survival to 65 (%)",
                hovertemplate="%{x:.1f}% reach 65<extra></extra>",
            )
        )

    fig.update_layout(
        title=dict(
            text="Life expectancy & survival to 65",
            font=dict(size=11, color="#555"),
            x=0,
        ),
        xaxis=dict(
            range=[LIFE_AXIS_FLOOR, max(life) * 1.05 if life else 90],
            ticksuffix=" yrs",
            nticks=4,
        ),
        xaxis2=dict(range=[0, 100], overlaying="x", visible=False),
        yaxis=dict(autorange="reversed", categoryorder="array", categoryarray=labels),
        showlegend=False,
        width=360,
        height=130,
        bargap=0.4,
        margin={"t": 28, "r": 16, "b": 30, "l": 60},
        plot_bgcolor="rgba(0,0,0,0)",
        transition=_transition(MINI_TRANSITION_MS),
    )
    return fig


def create_stage_chart(spec: Optional[ChartSpec]) -> Optional[go.Figure]:
    """Figure for a narrative chart spec; ``None`` clears the chart area."""
    if spec is None:
        return None
    if isinstance(spec, GenderBarsSpec):
        return create_gender_bars(spec)
    if isinstance(spec, FertilitySpec):
        return create_fertility_chart(spec)
    if isinstance(spec, LongevitySpec):
        return create_longevity_chart(spec)
    raise TypeError(f"Unsupported chart spec: {spec!r}")


def create_globe(
    countries: dict,
    center: Tuple[float, float],
    *,
    size: int = 760,
) -> go.Figure:
    """
    Orthographic globe with every country filled.

    Parameters
    ----------
    countries : dict
        GeoJSON ``FeatureCollection`` of country polygons.
    center : Tuple[float, float]
        ``(lon, lat)`` at the centre of the view.
    size : int, default 760
        Figure width and height in pixels.
    """
    features: Sequence[dict] = [
        f
        for f in countries.get("features", [])
        if (f.get("geometry") or {}).get("type") in ("Polygon", "MultiPolygon")
        and f.get("properties", {}).get("name")
    ]
    names = [f["properties"]["name"] for f in features]

    fig = go.Figure(
        go.Choropleth(
            geojson={"type": "FeatureCollection", "features": list(features)},
            locations=names,
            featureidkey="properties.name",
            z=[1] * len(names),
            colorscale=[[0, COUNTRY_FILL], [1, COUNTRY_FILL]],
            showscale=False,
            marker_line_color=COUNTRY_STROKE,
            marker_line_width=COUNTRY_STROKE_WIDTH,
            hovertemplate="%{location}<extra></extra>",
        )
    )
    lon, lat = center
    fig.update_geos(
        projection_type="orthographic",
        projection_rotation=dict(lon=lon, lat=lat, roll=0),
        showocean=True,
        oceancolor=WATER_COLOR,
        showland=False,
        showcountries=False,
        showcoastlines=False,
        showframe=False,
        bgcolor="rgba(0,0,0,0)",
        lataxis=dict(showgrid=True, gridcolor=GRATICULE_COLOR, dtick=10),
        lonaxis=dict(showgrid=True, gridcolor=GRATICULE_COLOR, dtick=10),
    )
    fig.update_layout(
        width=size,
        height=size,
        margin=dict(t=20, l=20, r=20, b=20),
        paper_bgcolor="rgba(0,0,0,0)",
        dragmode="pan",
    )
    return fig
