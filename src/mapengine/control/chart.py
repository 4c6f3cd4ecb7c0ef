"""ChartModel — the chart collaborator's state.

Five series share the x axis:
    0  daily max temperature (left axis, line)
    1  daily min temperature (left axis, line)
    2  heat bar: average HVI (right axis)
    3  food bar: average score, or feature count when no scores exist
    4  waste bar: total tons/day

The model mirrors what a plotting front end draws: per-series y/text/
visible values plus a layout dict. Updates arriving before
``initialize`` are ignored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from mapengine.data.climate import ClimateSeries
from mapengine.data.datasets import FOOD, HEAT, WASTE
from mapengine.data.records import AggregateSnapshot
from mapengine.errors import ChartUpdateFailure

TEMP_MAX_SERIES = 0
TEMP_MIN_SERIES = 1
HEAT_SERIES = 2
FOOD_SERIES = 3
WASTE_SERIES = 4

SERIES_FOR_DATASET = {HEAT: HEAT_SERIES, FOOD: FOOD_SERIES, WASTE: WASTE_SERIES}

_RESTYLE_KEYS = frozenset({"x", "y", "text", "visible"})


@dataclass
class Series:
    name: str
    kind: str
    color: str
    axis: str = "y"
    x: list = field(default_factory=list)
    y: list = field(default_factory=list)
    text: list[str] = field(default_factory=list)
    visible: bool = True


def bar_updates(snapshot: AggregateSnapshot) -> dict[int, tuple[float, str]]:
    """Bar value and label per series for a snapshot."""
    if snapshot.avg_heat is not None:
        heat = (round(snapshot.avg_heat, 1), f"{snapshot.avg_heat:.1f} (avg HVI)")
    else:
        heat = (0, "N/A")

    if snapshot.avg_food_score is not None:
        food = (round(snapshot.avg_food_score, 2), f"{snapshot.avg_food_score:.2f} (avg score)")
    else:
        food = (snapshot.food_count, f"{snapshot.food_count} features")

    if snapshot.total_waste is not None:
        waste = (round(snapshot.total_waste, 1), f"{snapshot.total_waste:.1f} tons/day")
    else:
        waste = (0, "N/A")

    return {HEAT_SERIES: heat, FOOD_SERIES: food, WASTE_SERIES: waste}


def right_axis_max(values: list[float]) -> float:
    """Upper bound of the metrics axis: 20% headroom, never below 100."""
    return max([100.0, 10.0] + [v * 1.2 for v in values])


class ChartModel:
    """Series and layout state for the aggregate chart."""

    def __init__(self) -> None:
        self.series: list[Series] = []
        self.layout: dict[str, Any] = {}
        self.ready = False

    def initialize(
        self,
        climate: ClimateSeries,
        snapshot: AggregateSnapshot,
        visibility: dict[int, bool] | None = None,
    ) -> None:
        """Build the five series and the layout."""
        visibility = visibility or {}
        self.series = [
            Series("Max Temp (°C)", "scatter", "#ff5e5e", x=list(climate.dates), y=list(climate.t_max)),
            Series("Min Temp (°C)", "scatter", "#00d4ff", x=list(climate.dates), y=list(climate.t_min)),
            Series("Heat (avg HVI)", "bar", "#ff5e5e", axis="y2", x=["Avg HVI"]),
            Series("Food (avg score / count)", "bar", "#00d4ff", axis="y2", x=["Food"]),
            Series("Waste (total tons/day)", "bar", "#888", axis="y2", x=["Waste"]),
        ]
        for index, visible in visibility.items():
            self.series[index].visible = visible
        self.layout = {
            "title": "NASA POWER: NYC Temperature (°C) with map metrics (right axis)",
            "xaxis": {"title": "Date / Category"},
            "yaxis": {"title": "Temperature (°C)"},
            "yaxis2": {"title": "Map metrics (see units)", "overlaying": "y", "side": "right", "range": [0, 100.0]},
        }
        self.ready = True
        self.apply_snapshot(snapshot)

    def restyle(self, index: int, **updates: Any) -> None:
        """Update attributes of one series.

        Raises:
            ChartUpdateFailure: For an unknown series index or attribute.
        """
        if not 0 <= index < len(self.series):
            raise ChartUpdateFailure(f"no series at index {index}")
        unknown = set(updates) - _RESTYLE_KEYS
        if unknown:
            raise ChartUpdateFailure(f"unsupported series attributes: {sorted(unknown)}")
        series = self.series[index]
        for key, value in updates.items():
            setattr(series, key, value)

    def relayout(self, path: str, value: Any) -> None:
        """Set a dotted layout path such as ``"yaxis2.range"``.

        Raises:
            ChartUpdateFailure: If a node along the path is not a mapping.
        """
        *parents, leaf = path.split(".")
        node = self.layout
        for part in parents:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ChartUpdateFailure(f"layout path {path!r} crosses non-mapping {part!r}")
        node[leaf] = value

    def apply_snapshot(self, snapshot: AggregateSnapshot) -> bool:
        """Paint a snapshot into the bar series.

        Returns:
            False if the chart is not initialized yet.
        """
        if not self.ready:
            return False
        updates = bar_updates(snapshot)
        for index, (value, label) in updates.items():
            self.restyle(index, y=[value], text=[label])
        self.relayout("yaxis2.range", [0, right_axis_max([v for v, _ in updates.values()])])
        return True

    def set_series_visible(self, index: int, visible: bool) -> bool:
        if not self.ready:
            return False
        self.restyle(index, visible=visible)
        return True

    def to_dict(self) -> dict:
        return {
            "ready": self.ready,
            "series": [asdict(s) for s in self.series],
            "layout": self.layout,
        }
