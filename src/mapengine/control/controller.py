"""DashboardController — wires ingestion, aggregation and visibility together.

Owns the DashboardState and is the only subscriber of the
VisibilityStateStore. On each visibility transition it fans out to the
map (LayerManager), the indicator panel, the chart series flags, and
recomputes the aggregate snapshot.

Lifecycle:
    controller = DashboardController(datasets)
    await controller.start()            # load all datasets, build chart
    await controller.set_visibility("heat", True)

Everything runs on one asyncio loop. Dataset loads are gathered
concurrently; each completion callback runs to completion before the
next, so readers never see a half-built collection.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence

import httpx
from loguru import logger

from mapengine.comms.event_bus import LAYER_READY, SNAPSHOT, VISIBILITY, EventBus
from mapengine.control.chart import SERIES_FOR_DATASET, ChartModel
from mapengine.control.indicators import IndicatorPanel
from mapengine.control.visibility import VisibilityStateStore
from mapengine.data.aggregate import compute_aggregates
from mapengine.data.climate import ClimateClient, build_raster_overlay
from mapengine.data.datasets import (
    DATASET_IDS,
    FOOD,
    HEAT,
    NASA_POINTS,
    NASA_RASTER,
    WASTE,
    DatasetSpec,
    food_dataset,
    heat_dataset,
    waste_dataset,
)
from mapengine.data.ingest import DatasetIngestor
from mapengine.data.records import AggregateSnapshot
from mapengine.data.state import DashboardState
from mapengine.errors import ChartUpdateFailure
from mapengine.geometry.centroid import DEFAULT_MAX_DEPTH
from mapengine.layers.layer import LayerGroup
from mapengine.layers.manager import LayerManager


class DashboardController:
    """Orchestrates the three datasets, the overlays and the collaborators."""

    def __init__(
        self,
        datasets: Sequence[DatasetSpec] | None = None,
        *,
        map_view: LayerManager | None = None,
        chart: ChartModel | None = None,
        indicators: IndicatorPanel | None = None,
        store: VisibilityStateStore | None = None,
        climate: ClimateClient | None = None,
        event_bus: EventBus | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        raster_factory: Callable[[], LayerGroup] = build_raster_overlay,
    ) -> None:
        if datasets is None:
            datasets = (food_dataset(), heat_dataset(), waste_dataset())

        self.state = DashboardState()
        self.map = map_view or LayerManager()
        self.chart = chart or ChartModel()
        self.indicators = indicators or IndicatorPanel()
        self.store = store or VisibilityStateStore()
        self.climate = climate or ClimateClient(client=client, timeout=timeout)
        self.event_bus = event_bus or EventBus()
        self._raster_factory = raster_factory
        self._pending: dict[str, asyncio.Task] = {}

        self.ingestors: dict[str, DatasetIngestor] = {
            spec.dataset_id: DatasetIngestor(
                spec,
                self.state,
                client=client,
                on_complete=self._on_dataset_loaded,
                timeout=timeout,
                max_depth=max_depth,
            )
            for spec in datasets
        }
        self._unsubscribe = self.store.subscribe(self._on_visibility_change)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> AggregateSnapshot:
        return self.state.snapshot

    def recompute(self) -> AggregateSnapshot:
        """Recompute the aggregate snapshot and push it to the chart."""
        snapshot = compute_aggregates(
            heat=self.state.records_for(HEAT),
            food=self.state.records_for(FOOD),
            waste=self.state.records_for(WASTE),
        )
        self.state.snapshot = snapshot
        try:
            if self.chart.apply_snapshot(snapshot):
                logger.debug(f"Aggregates updated: {snapshot}")
        except ChartUpdateFailure as e:
            logger.warning(f"Chart update failed, keeping previous chart state: {e}")
        self.event_bus.publish(SNAPSHOT, snapshot.to_dict())
        return snapshot

    def _refresh_indicators(self) -> None:
        for dataset_id in DATASET_IDS:
            self.indicators.update(
                dataset_id,
                self.state.marker_count(dataset_id),
                self.store.is_visible(dataset_id),
            )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _on_dataset_loaded(self, dataset_id: str) -> None:
        layer = self.state.layers[dataset_id]
        if self.store.is_visible(dataset_id):
            self.map.add_layer(layer)
        self._refresh_indicators()
        self.recompute()
        self.event_bus.publish(LAYER_READY, {
            "dataset": dataset_id,
            "ok": dataset_id in self.state.loaded,
            "markers": layer.marker_count,
        })

    async def _ingest_isolated(self, ingestor: DatasetIngestor) -> bool:
        try:
            return await ingestor.ingest()
        except Exception as e:
            logger.exception(f"{ingestor.dataset_id} load aborted: {e}")
            return False

    async def load_all(self) -> dict[str, bool]:
        """Load every dataset concurrently.

        Returns:
            dataset_id -> whether it loaded. One failure never stops the others.
        """
        ids = list(self.ingestors)
        results = await asyncio.gather(
            *(self._ingest_isolated(self.ingestors[d]) for d in ids)
        )
        present = [self.state.layers[d] for d in ids if self.state.layers[d].marker_count]
        self.map.fit_bounds(present)
        outcome = dict(zip(ids, results))
        logger.info(f"Datasets loaded: {outcome}")
        return outcome

    async def init_chart(self) -> None:
        """Fetch the city temperature series and build the chart."""
        series = await self.climate.fetch_series()
        visibility = {
            index: self.store.is_visible(dataset_id)
            for dataset_id, index in SERIES_FOR_DATASET.items()
        }
        self.chart.initialize(series, self.state.snapshot, visibility)
        logger.info("Chart initialized")
        self.recompute()

    async def start(self) -> None:
        """Load the datasets and build the chart concurrently.

        The chart does not wait for the datasets: every dataset completion
        repaints it, so a slow feed only delays its own bar.
        """
        await asyncio.gather(self.load_all(), self.init_chart())

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    async def set_visibility(self, dataset_id: str, visible: bool) -> bool:
        """Show or hide a dataset, waiting for any lazy overlay load.

        Raises:
            KeyError: If the dataset is unknown.
        """
        self.store.set_visible(dataset_id, visible)
        pending = self._pending.get(dataset_id)
        if pending is not None:
            await pending
        return self.store.is_visible(dataset_id)

    async def toggle(self, dataset_id: str) -> bool:
        return await self.set_visibility(dataset_id, not self.store.is_visible(dataset_id))

    def _on_visibility_change(self, dataset_id: str, visible: bool) -> None:
        if dataset_id in (NASA_RASTER, NASA_POINTS):
            self._toggle_overlay(dataset_id, visible)
        else:
            if visible:
                self.map.add_layer(self.state.layers[dataset_id])
            else:
                self.map.remove_layer(dataset_id)
            self._refresh_indicators()
            series = SERIES_FOR_DATASET.get(dataset_id)
            if series is not None:
                try:
                    self.chart.set_series_visible(series, visible)
                except ChartUpdateFailure as e:
                    logger.warning(f"Chart series toggle failed for {dataset_id}: {e}")
            self.recompute()
        self.event_bus.publish(VISIBILITY, {"dataset": dataset_id, "visible": visible})

    def _toggle_overlay(self, dataset_id: str, visible: bool) -> None:
        if not visible:
            self.map.remove_layer(dataset_id)
            return

        cached = self.state.overlays.get(dataset_id)
        if dataset_id == NASA_RASTER:
            if cached is None:
                cached = self._raster_factory()
                self.state.overlays[dataset_id] = cached
            native = cached.metadata.get("maxNativeZoom")
            if native is not None and self.map.zoom > native:
                logger.debug(f"Map zoom {self.map.zoom} > {native}; clamping for raster tiles")
                self.map.set_zoom(native)
            self.map.add_layer(cached)
            return

        if cached is not None:
            self.map.add_layer(cached)
        elif dataset_id not in self._pending:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.error(f"{dataset_id} can only load on a running event loop; staying hidden")
                raise
            self._pending[dataset_id] = loop.create_task(self._load_climate_points())

    async def _load_climate_points(self) -> None:
        try:
            layer = await self.climate.load_points()
            self.state.overlays[NASA_POINTS] = layer
            if self.store.is_visible(NASA_POINTS):
                self.map.add_layer(layer)
            self.event_bus.publish(LAYER_READY, {
                "dataset": NASA_POINTS, "ok": True, "markers": layer.marker_count,
            })
        except Exception as e:
            logger.exception(f"Climate points overlay failed: {e}")
        finally:
            self._pending.pop(NASA_POINTS, None)

    def close(self) -> None:
        self._unsubscribe()
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
