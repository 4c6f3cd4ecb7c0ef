"""Tests for ChartModel — bar values, labels, axis range, series visibility."""

import pytest

from mapengine.control.chart import (
    FOOD_SERIES,
    HEAT_SERIES,
    WASTE_SERIES,
    ChartModel,
    bar_updates,
    right_axis_max,
)
from mapengine.data.climate import ClimateSeries
from mapengine.data.records import AggregateSnapshot
from mapengine.errors import ChartUpdateFailure

pytestmark = pytest.mark.unit


@pytest.fixture
def chart():
    c = ChartModel()
    c.initialize(ClimateSeries(["20250101"], [4.0], [-2.0]), AggregateSnapshot())
    return c


class TestBarUpdates:
    """Snapshot -> bar value and label."""

    def test_all_missing(self):
        updates = bar_updates(AggregateSnapshot(food_count=12))
        assert updates[HEAT_SERIES] == (0, "N/A")
        assert updates[FOOD_SERIES] == (12, "12 features")
        assert updates[WASTE_SERIES] == (0, "N/A")

    def test_values_rounded(self):
        updates = bar_updates(AggregateSnapshot(66.666, 3.14159, 4, 1234.56))
        assert updates[HEAT_SERIES] == (66.7, "66.7 (avg HVI)")
        assert updates[FOOD_SERIES] == (3.14, "3.14 (avg score)")
        assert updates[WASTE_SERIES] == (1234.6, "1234.6 tons/day")

    def test_right_axis_max(self):
        assert right_axis_max([0, 0, 0]) == 100
        assert right_axis_max([60, 3, 400]) == pytest.approx(480)


class TestChartModel:
    """ChartModel lifecycle."""

    def test_updates_before_initialize_ignored(self):
        c = ChartModel()
        assert c.apply_snapshot(AggregateSnapshot(avg_heat=1)) is False
        assert c.set_series_visible(HEAT_SERIES, False) is False
        assert c.series == []

    def test_initialize_builds_five_series(self, chart):
        assert chart.ready
        assert len(chart.series) == 5
        assert chart.series[0].x == ["20250101"]
        assert chart.series[1].y == [-2.0]
        assert chart.series[HEAT_SERIES].axis == "y2"

    def test_initial_visibility(self):
        c = ChartModel()
        c.initialize(ClimateSeries(), AggregateSnapshot(), {HEAT_SERIES: False})
        assert c.series[HEAT_SERIES].visible is False
        assert c.series[FOOD_SERIES].visible is True

    def test_apply_snapshot(self, chart):
        chart.apply_snapshot(AggregateSnapshot(avg_heat=60, food_count=3, total_waste=400))
        assert chart.series[HEAT_SERIES].y == [60]
        assert chart.series[HEAT_SERIES].text == ["60.0 (avg HVI)"]
        assert chart.series[FOOD_SERIES].y == [3]
        assert chart.series[WASTE_SERIES].text == ["400.0 tons/day"]
        assert chart.layout["yaxis2"]["range"] == [0, pytest.approx(480)]

    def test_set_series_visible(self, chart):
        chart.set_series_visible(WASTE_SERIES, False)
        assert chart.series[WASTE_SERIES].visible is False

    def test_restyle_bad_index(self, chart):
        with pytest.raises(ChartUpdateFailure):
            chart.restyle(9, y=[1])

    def test_restyle_bad_attribute(self, chart):
        with pytest.raises(ChartUpdateFailure):
            chart.restyle(HEAT_SERIES, color="#000")

    def test_relayout_nested(self, chart):
        chart.relayout("legend.orientation", "h")
        assert chart.layout["legend"] == {"orientation": "h"}

    def test_relayout_through_scalar_fails(self, chart):
        chart.layout["yaxis2"] = "broken"
        with pytest.raises(ChartUpdateFailure):
            chart.relayout("yaxis2.range", [0, 1])

    def test_apply_snapshot_with_broken_layout_fails(self, chart):
        chart.layout["yaxis2"] = None
        with pytest.raises(ChartUpdateFailure):
            chart.apply_snapshot(AggregateSnapshot(avg_heat=10))

    def test_to_dict(self, chart):
        d = chart.to_dict()
        assert d["ready"] is True
        assert d["series"][FOOD_SERIES]["name"] == "Food (avg score / count)"
