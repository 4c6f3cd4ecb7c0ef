"""DashboardState — the mutable state of one dashboard instance.

Owned by the DashboardController and handed to the ingestors. Point-record
collections and layers are swapped in whole through ``publish``; readers
always see either the previous collection or the new one, never a
partially built list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from mapengine.data.datasets import DATASET_IDS
from mapengine.data.records import AggregateSnapshot, PointRecord
from mapengine.layers.layer import LayerGroup, placeholder


@dataclass
class DashboardState:
    """Per-dataset collections and layers, cached overlays, last snapshot."""

    records: dict[str, tuple[PointRecord, ...]] = field(
        default_factory=lambda: {d: () for d in DATASET_IDS}
    )
    layers: dict[str, LayerGroup] = field(
        default_factory=lambda: {d: placeholder(d) for d in DATASET_IDS}
    )
    overlays: dict[str, LayerGroup] = field(default_factory=dict)
    snapshot: AggregateSnapshot = field(default_factory=AggregateSnapshot)
    loaded: set[str] = field(default_factory=set)

    def publish(
        self,
        dataset_id: str,
        records: Iterable[PointRecord],
        layer: LayerGroup,
        ok: bool = True,
    ) -> None:
        """Replace a dataset's collection and layer in one step."""
        frozen = tuple(records)
        self.records[dataset_id] = frozen
        self.layers[dataset_id] = layer
        if ok:
            self.loaded.add(dataset_id)
        else:
            self.loaded.discard(dataset_id)

    def records_for(self, dataset_id: str) -> tuple[PointRecord, ...]:
        return self.records.get(dataset_id, ())

    def layer_for(self, dataset_id: str) -> LayerGroup | None:
        if dataset_id in self.layers:
            return self.layers[dataset_id]
        return self.overlays.get(dataset_id)

    def marker_count(self, dataset_id: str) -> int:
        layer = self.layer_for(dataset_id)
        return layer.marker_count if layer is not None else 0
