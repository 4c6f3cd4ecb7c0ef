"""DatasetIngestor — fetch one dataset and turn it into point records.

One ingestor per dataset. ``ingest()`` never raises: a failed fetch
leaves the dataset with an empty collection and an empty placeholder
layer, and individual bad features are skipped with a warning. Either
way the completion callback fires so the dashboard can recompute.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from loguru import logger

from mapengine.data.datasets import DatasetSpec, first_present
from mapengine.data.records import PointRecord
from mapengine.data.state import DashboardState
from mapengine.errors import CentroidUnresolvable, FetchFailure
from mapengine.geometry.centroid import DEFAULT_MAX_DEPTH, require_centroid
from mapengine.geometry.parser import normalize_features, raw_features
from mapengine.layers.layer import LayerFeature, LayerGroup, Marker, placeholder

_USER_AGENT = "resilience-map/0.1.0"
_POINT_TYPES = ("Point", "MultiPoint")


def resolve_metric(properties: dict, keys: tuple[str, ...]) -> float | None:
    """First present, non-null value among ``keys`` as a float.

    Values that are blank, boolean, non-numeric or non-finite count as
    missing.
    """
    value = first_present(properties, keys)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


async def fetch_json(
    url: str,
    source: str,
    client: httpx.AsyncClient | None = None,
    timeout: float | None = None,
    params: dict | None = None,
) -> Any:
    """GET ``url`` once and decode the JSON body.

    Uses ``client`` when given, otherwise a short-lived client.

    Raises:
        FetchFailure: On transport errors, non-2xx status, or a non-JSON body.
    """
    headers = {"User-Agent": _USER_AGENT, "Accept": "application/json"}
    try:
        if client is not None:
            resp = await client.get(url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own:
                resp = await own.get(url, params=params, headers=headers)
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FetchFailure(source, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise FetchFailure(source, f"{type(e).__name__}: {e}") from e

    try:
        return resp.json()
    except ValueError as e:
        raise FetchFailure(source, "response is not JSON") from e


class DatasetIngestor:
    """Fetches, normalizes and publishes one dataset into a DashboardState."""

    def __init__(
        self,
        spec: DatasetSpec,
        state: DashboardState,
        client: httpx.AsyncClient | None = None,
        on_complete: Callable[[str], None] | None = None,
        timeout: float | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.spec = spec
        self._state = state
        self._client = client
        self._on_complete = on_complete
        self._timeout = timeout
        self._max_depth = max_depth

    @property
    def dataset_id(self) -> str:
        return self.spec.dataset_id

    @property
    def records(self) -> tuple[PointRecord, ...]:
        return self._state.records_for(self.dataset_id)

    async def fetch(self) -> Any:
        return await fetch_json(
            self.spec.url, self.dataset_id, client=self._client, timeout=self._timeout,
        )

    def build(self, payload: Any) -> tuple[list[PointRecord], LayerGroup]:
        """Turn a decoded payload into point records and a layer group.

        Pure apart from logging: nothing is published.
        """
        spec = self.spec
        raws = raw_features(payload)
        features = normalize_features(raws)
        logger.debug(
            f"{spec.dataset_id}: {len(raws)} raw features, {len(features)} with geometry"
        )

        records: list[PointRecord] = []
        shapes: list[LayerFeature] = []
        markers: list[Marker] = []

        for feature in features:
            props = feature.properties
            metric = resolve_metric(props, spec.metric_keys)

            if feature.geometry_type not in _POINT_TYPES:
                members = feature.geometry.get("coordinates")
                if members is None:
                    members = feature.geometry.get("geometries")
                if members is not None:
                    shapes.append(LayerFeature(
                        feature_id=f"{spec.dataset_id}-shape-{feature.index}",
                        geometry_type=feature.geometry_type,
                        coordinates=members,
                        properties=props,
                        style=spec.shape_style(metric),
                    ))

            try:
                centroid = require_centroid(feature.geometry, self._max_depth)
            except CentroidUnresolvable as e:
                logger.warning(f"{spec.dataset_id} feature {feature.index} skipped: {e}")
                continue

            name = spec.resolve_name(props, feature.index)
            records.append(PointRecord(name=name, lat=centroid.lat, lon=centroid.lon, metric=metric))
            markers.append(Marker(
                marker_id=f"{spec.dataset_id}-{feature.index}",
                lat=centroid.lat,
                lon=centroid.lon,
                label=name,
                detail=spec.describe(props, metric),
                style=spec.marker_style(metric),
            ))

        layer = LayerGroup(
            layer_id=spec.dataset_id,
            name=spec.name,
            source_format="geojson",
            features=shapes,
            markers=markers,
            z_index=10,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        return records, layer

    async def ingest(self) -> bool:
        """Fetch and publish the dataset.

        Returns:
            True if the dataset loaded, False if it degraded to empty.
        """
        ok = False
        try:
            payload = await self.fetch()
            records, layer = self.build(payload)
            self._state.publish(self.dataset_id, records, layer)
            ok = True
            logger.info(
                f"{self.spec.name} ready: {len(records)} point records, "
                f"{len(layer.features)} shapes"
            )
        except FetchFailure as e:
            logger.error(f"{self.spec.name} load failed: {e}")
            self._state.publish(self.dataset_id, (), placeholder(self.dataset_id, self.spec.name), ok=False)
        except Exception as e:
            logger.exception(f"{self.spec.name} ingestion error: {e}")
            self._state.publish(self.dataset_id, (), placeholder(self.dataset_id, self.spec.name), ok=False)
        finally:
            if self._on_complete is not None:
                self._on_complete(self.dataset_id)
        return ok
