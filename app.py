import logging
import math
import time
from pathlib import Path

import plotly.graph_objects as go
from shiny import reactive, render
from shiny.express import input, ui
from shinywidgets import render_plotly

# Import organized modules
from gapviz.aggregate import (
    GapChartState,
    available_decades,
    decade_label,
    find_path_row,
    gender_gap_rows,
    life_path_rows,
    region_choices,
    rows_for_decade,
    year_choices,
)
from gapviz.config import (
    GENDERS,
    GLOBE_TICK_SECONDS,
    LOG_LEVEL,
    TRANSITION_EASING,
    WORLD_OBJECT,
)
from gapviz.data_manager import load_gender_data, load_life_data, load_world_topology
from gapviz.globe import GlobeState
from gapviz.narrative import stage_view
from gapviz.plotting import (
    bar_trace_update,
    create_gap_chart,
    create_globe,
    create_stage_chart,
    exit_remaining,
    gap_layout_update,
    plan_bar_transition,
    schedule_bar_exit,
)
from gapviz.stepper import (
    STAGES,
    JumpToStage,
    NextStage,
    PrevStage,
    SelectRegion,
    SelectYear,
    ToggleGender,
    ViewState,
    advance_label,
    initial_state,
    prev_disabled,
    reduce,
    stage_track,
)
from gapviz.topology import feature

logging.basicConfig(
    level=LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s"
)
logger = logging.getLogger("gapviz.app")

GENDER_CHOICES = {"female": "Girl", "male": "Boy"}

# ======================================================
#  REACTIVE STATE
# ======================================================
# Load once on startup; values stay in-memory until app restart.
gender_store = reactive.value(load_gender_data())
life_store = reactive.value(load_life_data())
topology_store = reactive.value(load_world_topology())

gap_state = reactive.value(GapChartState())
shown_gap_rows = reactive.value(None)
pending_exit = reactive.value(None)

view_state = reactive.value(ViewState())

globe = GlobeState()


def dispatch(intent) -> None:
    """Apply a control intent to the life-path view state."""
    view_state.set(reduce(view_state.get(), intent))


# ======================================================
#  GENDER GAP: derived data
# ======================================================


@reactive.calc
def gap_rows():
    return gender_gap_rows(gender_store.get())


@reactive.calc
def gap_bootstrap():
    return GapChartState.bootstrap(gap_rows())


@reactive.effect
def _sync_decade_select():
    decades = available_decades(gap_rows())
    state = gap_bootstrap()
    ui.update_select(
        "decade",
        choices={str(d): decade_label(d) for d in decades},
        selected=str(state.decade) if state.decade is not None else None,
    )


@reactive.effect
@reactive.event(input.decade, ignore_init=True)
def _on_decade_change():
    raw = input.decade()
    if not raw:
        return
    decade = int(raw)
    gaps = gap_rows()
    with reactive.isolate():
        current = gap_state.get()
        previous = shown_gap_rows.get()
    if current.decade == decade and previous is not None:
        return

    state = current.select(gaps, decade)
    rows = rows_for_decade(gaps, decade)
    plan = plan_bar_transition(previous, rows, animate=True)

    widget = gap_chart.widget
    if widget is not None:
        with widget.batch_update():
            widget.data[0].update(bar_trace_update(plan.start))
            widget.layout.update(gap_layout_update(plan.start, current.domain or state.domain))
        with widget.batch_animate(duration=plan.duration, easing=TRANSITION_EASING):
            widget.data[0].update(bar_trace_update(plan.end))
            widget.layout.xaxis.range = list(state.domain)

    gap_state.set(state)
    shown_gap_rows.set(rows)
    pending_exit.set(schedule_bar_exit(plan, time.monotonic()))


@reactive.effect
def _drop_exited_bars():
    pending = pending_exit.get()
    if pending is None:
        return
    remaining = exit_remaining(pending, time.monotonic())
    if remaining > 0:
        reactive.invalidate_later(remaining)
        return
    plan = pending[0]
    widget = gap_chart.widget
    if widget is not None:
        with widget.batch_update():
            widget.data[0].update(bar_trace_update(plan.final))
            widget.layout.update(
                gap_layout_update(plan.final, tuple(widget.layout.xaxis.range))
            )
    pending_exit.set(None)


# ======================================================
#  LIFE PATH: derived data and intents
# ======================================================


@reactive.calc
def path_rows():
    return life_path_rows(life_store.get())


@reactive.effect
def _init_life_controls():
    rows = path_rows()
    regions = region_choices(rows)
    years = year_choices(rows)
    state = initial_state(regions, years)
    ui.update_select("lp_region", choices=regions, selected=state.region)
    ui.update_select(
        "lp_year",
        choices={str(y): decade_label(y) for y in years},
        selected=str(state.year) if state.year is not None else None,
    )
    view_state.set(state)


@reactive.effect
@reactive.event(input.lp_region, ignore_init=True)
def _on_region():
    if input.lp_region():
        dispatch(SelectRegion(input.lp_region()))


@reactive.effect
@reactive.event(input.lp_year, ignore_init=True)
def _on_year():
    if input.lp_year():
        dispatch(SelectYear(int(input.lp_year())))


@reactive.effect
@reactive.event(input.lp_gender, ignore_init=True)
def _on_gender():
    dispatch(ToggleGender(input.lp_gender()))


@reactive.effect
@reactive.event(input.lp_prev)
def _on_prev():
    dispatch(PrevStage())


@reactive.effect
@reactive.event(input.lp_next)
def _on_next():
    dispatch(NextStage())


def _bind_stage_button(stage_id: str) -> None:
    @reactive.effect
    @reactive.event(input[f"lp_stage_{stage_id}"])
    def _jump():
        dispatch(JumpToStage(stage_id))


for _stage in STAGES:
    _bind_stage_button(_stage.id)


@reactive.effect
def _sync_nav_buttons():
    state = view_state.get()
    ui.update_action_button("lp_prev", disabled=prev_disabled(state))
    ui.update_action_button("lp_next", label=advance_label(state))


@reactive.calc
def current_view():
    state = view_state.get()
    return stage_view(state, find_path_row(path_rows(), state.region, state.year))


# ======================================================
#  GLOBE: rotation
# ======================================================


@reactive.calc
def countries():
    topology = topology_store.get()
    if topology is None:
        return None
    return feature(topology, WORLD_OBJECT)


@reactive.effect
def _spin_globe():
    reactive.invalidate_later(GLOBE_TICK_SECONDS)
    widget = globe_map.widget
    if widget is None:
        return
    if globe.tick(time.monotonic()):
        lon, lat = globe.center
        widget.layout.geo.projection.rotation.update(lon=lon, lat=lat)


def _on_client_rotation(projection, rotation) -> None:
    if rotation is None or rotation.lon is None or rotation.lat is None:
        return
    lon, lat = globe.center
    if math.isclose(rotation.lon, lon, abs_tol=1e-6) and math.isclose(
        rotation.lat, lat, abs_tol=1e-6
    ):
        return
    globe.follow(rotation.lon, rotation.lat, time.monotonic())


# ======================================================
#  UI LAYOUT
# ======================================================
css_file = Path(__file__).parent / "css" / "theme.css"

ui.include_css(css_file)

ui.page_opts(
    title="Gender paths",
    fillable=False,
    fillable_mobile=True,
    full_width=True,
    id="page",
    lang="en",
)

with ui.navset_tab(id="main_tabs"):
    with ui.nav_panel("Gender gap"):
        with ui.layout_sidebar():
            with ui.sidebar(open="always", position="right"):
                ui.input_select("decade", "Decade", choices={})

            @render_plotly
            def gap_chart():
                gaps = gap_rows()
                state = gap_bootstrap()
                with reactive.isolate():
                    if state.decade is None:
                        shown_gap_rows.set(None)
                        return go.Figure()
                    state = state.select(gaps, state.decade)
                    rows = rows_for_decade(gaps, state.decade)
                    gap_state.set(state)
                    shown_gap_rows.set(rows)
                return create_gap_chart(rows, state.domain)

    with ui.nav_panel("Globe"):
        with ui.div(style="display:flex; justify-content:center;"):

            @render_plotly
            def globe_map():
                collection = countries()
                if collection is None:
                    return go.Figure()
                widget = go.FigureWidget(create_globe(collection, globe.center))
                widget.layout.geo.projection.on_change(_on_client_rotation, "rotation")
                return widget

    with ui.nav_panel("Life path"):
        with ui.layout_sidebar():
            with ui.sidebar(open="always", position="right"):
                ui.input_select("lp_region", "Region", choices=[])
                ui.input_select("lp_year", "Decade", choices={})
                ui.input_radio_buttons(
                    "lp_gender", "Walk the path as a", GENDER_CHOICES, selected=GENDERS[0], inline=True
                )

            with ui.div(class_="lp-stage-track"):
                for _stage in STAGES:
                    ui.input_action_button(
                        f"lp_stage_{_stage.id}", _stage.label, class_="stage-node"
                    )

            @render.ui
            def stage_progress():
                items = [
                    ui.tags.span(
                        str(i + 1), class_=f"stage-node-circle {status}", title=stage.label
                    )
                    for i, (stage, status) in enumerate(stage_track(view_state.get()))
                ]
                return ui.div(*items, class_="lp-stage-progress")

            @render.ui
            def stage_title():
                return ui.h4(current_view().title, class_="lp-stage-title")

            @render.text
            def stage_text():
                return current_view().text

            @render_plotly
            def stage_chart():
                return create_stage_chart(current_view().chart)

            with ui.div(class_="lp-nav"):
                ui.input_action_button("lp_prev", "◀ Previous stage", class_="btn-secondary")
                ui.input_action_button("lp_next", "Next stage ▶", class_="btn-primary")
