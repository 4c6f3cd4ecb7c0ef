"""Cross-dataset aggregation.

``compute_aggregates`` is a pure function of the three point-record
collections: same inputs, same snapshot, no side effects.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from mapengine.data.records import AggregateSnapshot, PointRecord


def _metrics(records: Iterable[PointRecord]) -> list[float]:
    """Non-null, finite metric values."""
    return [
        r.metric for r in records
        if r.metric is not None and math.isfinite(r.metric)
    ]


def mean_metric(records: Iterable[PointRecord]) -> float | None:
    values = _metrics(records)
    if not values:
        return None
    return sum(values) / len(values)


def sum_metric(records: Iterable[PointRecord]) -> float | None:
    values = _metrics(records)
    if not values:
        return None
    return sum(values)


def compute_aggregates(
    heat: Sequence[PointRecord] = (),
    food: Sequence[PointRecord] = (),
    waste: Sequence[PointRecord] = (),
) -> AggregateSnapshot:
    """Build a snapshot from the current heat, food and waste collections."""
    return AggregateSnapshot(
        avg_heat=mean_metric(heat),
        avg_food_score=mean_metric(food),
        food_count=len(food),
        total_waste=sum_metric(waste),
    )
