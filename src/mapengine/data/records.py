"""Point records and aggregate snapshots."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class PointRecord:
    """One centroid-derived feature of a dataset.

    ``metric`` is the dataset's measurement (HVI score, food score,
    tons/day) or None when the feature carries none.
    """

    name: str
    lat: float
    lon: float
    metric: float | None = None


@dataclass(frozen=True)
class AggregateSnapshot:
    """Summary statistics across the three datasets.

    Every field is None when its source has no usable values, except
    ``food_count`` which counts food records regardless of score.
    """

    avg_heat: float | None = None
    avg_food_score: float | None = None
    food_count: int = 0
    total_waste: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)
