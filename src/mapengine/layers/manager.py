"""LayerManager — the map's set of displayed layer groups and viewport.

Acts as the map collaborator: the dashboard controller adds and removes
layer groups as datasets are toggled, clamps zoom for raster overlays,
and fits the viewport around loaded data.
"""

from __future__ import annotations

import json
from typing import Iterable

from loguru import logger

from mapengine.geometry.centroid import Centroid, bounds
from mapengine.layers.layer import LayerGroup


class LayerManager:
    """Layer groups currently on the map, plus zoom/centre state."""

    def __init__(
        self,
        center: tuple[float, float] = (40.7128, -74.0060),
        zoom: int = 11,
        max_zoom: int = 19,
    ) -> None:
        self._layers: dict[str, LayerGroup] = {}
        self.center: tuple[float, float] = center
        self.zoom = zoom
        self.max_zoom = max_zoom
        self.viewport: tuple[Centroid, Centroid] | None = None

    def add_layer(self, layer: LayerGroup) -> str:
        """Put a layer group on the map, replacing any with the same ID.

        Returns:
            The layer_id of the added layer.
        """
        self._layers[layer.layer_id] = layer
        return layer.layer_id

    def remove_layer(self, layer_id: str) -> bool:
        """Take a layer group off the map.

        Returns:
            True if the layer was removed, False if it wasn't on the map.
        """
        if layer_id in self._layers:
            del self._layers[layer_id]
            return True
        return False

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self._layers

    def get_layer(self, layer_id: str) -> LayerGroup | None:
        return self._layers.get(layer_id)

    def list_layers(self) -> list[LayerGroup]:
        """Layer groups on the map, bottom to top."""
        return sorted(self._layers.values(), key=lambda l: l.z_index)

    def set_zoom(self, zoom: int) -> None:
        self.zoom = max(0, min(zoom, self.max_zoom))

    def fit_bounds(self, layers: Iterable[LayerGroup], padding: int = 20) -> bool:
        """Fit the viewport around every marker in ``layers``.

        Returns:
            True if the viewport changed, False when there was nothing to fit.
        """
        points = [
            Centroid(m.lat, m.lon)
            for layer in layers
            for m in layer.markers
        ]
        box = bounds(points)
        if box is None:
            return False
        south_west, north_east = box
        self.viewport = box
        self.center = (
            (south_west.lat + north_east.lat) / 2,
            (south_west.lon + north_east.lon) / 2,
        )
        logger.debug(
            f"Viewport fitted to {len(points)} markers "
            f"({south_west.lat:.4f},{south_west.lon:.4f})-"
            f"({north_east.lat:.4f},{north_east.lon:.4f}) padding={padding}"
        )
        return True

    def export_layer(self, layer_id: str, format: str = "geojson") -> str:
        """Export a layer on the map to a string in the given format.

        Raises:
            KeyError: If the layer is not on the map.
            ValueError: If the format is not supported.
        """
        layer = self._layers.get(layer_id)
        if layer is None:
            raise KeyError(f"Layer not found: {layer_id}")

        if format == "geojson":
            from mapengine.layers.exporters.geojson import export_geojson
            return json.dumps(export_geojson(layer))
        raise ValueError(f"Unsupported export format: {format}")
