"""Tests for figure builders and the bar transition plan."""

import plotly.graph_objects as go
import pytest

from gapviz.aggregate import gender_gap_rows, local_gap_domain, rows_for_decade
from gapviz.config import BAR_TRANSITION_MS, BOYS_COLOR, GIRLS_COLOR, NEUTRAL_COLOR
from gapviz.narrative import FertilitySpec, GenderBarsSpec, LongevitySpec
from gapviz.plotting import (
    bar_trace_update,
    create_gap_chart,
    create_globe,
    create_stage_chart,
    exit_remaining,
    gap_chart_height,
    gap_color,
    gap_direction,
    plan_bar_transition,
    schedule_bar_exit,
)
from gapviz.topology import feature


@pytest.fixture
def decade_2000(gender_raw):
    return rows_for_decade(gender_gap_rows(gender_raw), 2000)


@pytest.fixture
def decade_2010(gender_raw):
    return rows_for_decade(gender_gap_rows(gender_raw), 2010)


class TestGapChart:
    def test_south_asia_bar_on_boys_side(self, decade_2000):
        fig = create_gap_chart(decade_2000, local_gap_domain(decade_2000))
        bar = fig.data[0]
        i = list(bar.y).index("South Asia")
        assert bar.x[i] == -20.0
        assert bar.marker.color[i] == BOYS_COLOR
        assert tuple(fig.layout.xaxis.range) == (-20.0, 20.0)

    def test_bar_order_follows_rows(self, decade_2000):
        fig = create_gap_chart(decade_2000, local_gap_domain(decade_2000))
        assert list(fig.data[0].y) == list(decade_2000["region"])
        assert list(fig.layout.yaxis.categoryarray) == list(decade_2000["region"])

    def test_height_scales_with_rows(self, decade_2000):
        fig = create_gap_chart(decade_2000, (-1, 1))
        assert fig.layout.height == gap_chart_height(3)

    def test_axis_title_and_ticks(self, decade_2000):
        fig = create_gap_chart(decade_2000, (-1, 1))
        assert fig.layout.xaxis.title.text == "Gender gap (girls - boys), percentage points"
        assert fig.layout.xaxis.ticksuffix == " pts"

    def test_hover_text(self, decade_2000):
        hover = bar_trace_update(decade_2000.assign(value=0.0))["hovertext"]
        south_asia = hover[list(decade_2000["region"]).index("South Asia")]
        assert "2000-2009" in south_asia
        assert "20.00 percentage points" in south_asia
        assert "Gap favors boys" in south_asia

    def test_animated_chart_has_transition(self, decade_2000):
        fig = create_gap_chart(decade_2000, (-1, 1), animate=True)
        assert fig.layout.transition.duration == BAR_TRANSITION_MS


class TestColors:
    def test_zero_gap_counts_as_girls_side(self):
        assert gap_color(0.0) == GIRLS_COLOR
        assert gap_color(-0.1) == BOYS_COLOR

    def test_direction(self):
        assert gap_direction(2.0) == ("Gap favors girls", GIRLS_COLOR)
        assert gap_direction(-2.0) == ("Gap favors boys", BOYS_COLOR)
        assert gap_direction(0.0) == ("No gender gap", NEUTRAL_COLOR)


class TestBarTransition:
    def test_first_draw_enters_everything(self, decade_2000):
        plan = plan_bar_transition(None, decade_2000)
        assert plan.entering == list(decade_2000["region"])
        assert plan.updating == [] and plan.exiting == []
        assert plan.start["value"].tolist() == [0.0, 0.0, 0.0]
        assert plan.end["value"].tolist() == decade_2000["secondary_gap"].tolist()

    def test_enter_update_exit(self, decade_2000, decade_2010):
        plan = plan_bar_transition(decade_2000, decade_2010)
        assert plan.entering == ["East Asia & Pacific", "Sub-Saharan Africa"]
        assert plan.updating == []
        assert set(plan.exiting) == {
            "Europe & Central Asia",
            "North America",
            "South Asia",
        }

    def test_exiting_bars_shrink_then_leave(self, decade_2000, decade_2010):
        plan = plan_bar_transition(decade_2000, decade_2010)
        end = dict(zip(plan.end["region"], plan.end["value"]))
        start = dict(zip(plan.start["region"], plan.start["value"]))
        assert start["South Asia"] == -20.0
        assert end["South Asia"] == 0.0
        assert list(plan.final["region"]) == list(decade_2010["region"])
        assert plan.duration == BAR_TRANSITION_MS

    def test_persisting_bars_restart_when_animated(self, decade_2000):
        plan = plan_bar_transition(decade_2000, decade_2000)
        assert plan.updating == list(decade_2000["region"])
        assert plan.start["value"].tolist() == [0.0, 0.0, 0.0]

    def test_persisting_bars_hold_without_animation(self, decade_2000):
        plan = plan_bar_transition(decade_2000, decade_2000, animate=False)
        assert plan.start["value"].tolist() == decade_2000["secondary_gap"].tolist()
        assert plan.duration == 0


class TestExitScheduling:
    def test_exiting_bars_scheduled_after_animation(self, decade_2000, decade_2010):
        plan = plan_bar_transition(decade_2000, decade_2010)
        pending = schedule_bar_exit(plan, 10.0)
        assert pending[0] is plan
        assert pending[1] == pytest.approx(10.0 + BAR_TRANSITION_MS / 1000)
        assert exit_remaining(pending, 10.5) == pytest.approx(0.4)
        assert exit_remaining(pending, 12.0) == 0.0

    def test_nothing_to_drop_without_exits(self, decade_2000):
        assert schedule_bar_exit(plan_bar_transition(None, decade_2000), 0.0) is None

    def test_quick_second_change_cancels_stale_cleanup(self, decade_2000, decade_2010):
        # 2000 -> 2010 leaves exiting bars; a change to a decade with the same
        # regions before the cleanup fires must not redraw 2010 afterwards.
        first = plan_bar_transition(decade_2000, decade_2010)
        pending = schedule_bar_exit(first, 0.0)
        assert pending is not None

        later = decade_2010.assign(secondary_gap=decade_2010["secondary_gap"] + 1.0)
        second = plan_bar_transition(decade_2010, later)
        assert second.exiting == []
        pending = schedule_bar_exit(second, 0.3)
        assert pending is None

    def test_latest_cleanup_wins(self, decade_2000, decade_2010):
        first = schedule_bar_exit(plan_bar_transition(decade_2000, decade_2010), 0.0)
        back = plan_bar_transition(decade_2010, decade_2000)
        second = schedule_bar_exit(back, 0.3)
        assert second[0] is back
        assert list(second[0].final["region"]) == list(decade_2000["region"])
        assert exit_remaining(second, first[1]) > 0


class TestStageCharts:
    def test_gender_bars(self):
        fig = create_stage_chart(GenderBarsSpec("Primary school enrollment", 80.0, 90.0))
        assert list(fig.data[0].y) == ["Girls", "Boys"]
        assert list(fig.data[0].text) == ["80.0%", "90.0%"]

    def test_fertility(self):
        fig = create_stage_chart(FertilitySpec(3.46))
        assert fig.data[0].x[0] == pytest.approx(4.46)
        assert fig.data[2].text[0] == "3.5 kids"

    def test_longevity_with_other(self):
        fig = create_stage_chart(LongevitySpec(64.0, 62.0, 70.0, 65.0))
        assert list(fig.data[0].y) == ["You", "Other"]
        assert list(fig.data[0].text) == ["64.0 yrs", "62.0 yrs"]
        assert list(fig.data[1].x) == [70.0, 65.0]

    def test_longevity_alone(self):
        fig = create_stage_chart(LongevitySpec(64.0, None, 70.0, None))
        assert list(fig.data[0].y) == ["You"]

    def test_no_chart(self):
        assert create_stage_chart(None) is None

    def test_unknown_spec(self):
        with pytest.raises(TypeError):
            create_stage_chart("bars")


class TestGlobe:
    def test_orthographic_projection(self, tiny_topology):
        fig = create_globe(feature(tiny_topology, "countries"), (10.0, 20.0))
        assert isinstance(fig, go.Figure)
        assert fig.layout.geo.projection.type == "orthographic"
        assert fig.layout.geo.projection.rotation.lon == 10.0
        assert fig.layout.geo.projection.rotation.lat == 20.0

    def test_only_named_polygons_drawn(self, tiny_topology):
        fig = create_globe(feature(tiny_topology, "countries"), (0.0, 0.0))
        assert list(fig.data[0].locations) == ["Left", "Right"]
