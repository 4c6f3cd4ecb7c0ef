"""Layer group dataclasses handed to the map collaborator.

Shapes keep GeoJSON convention ([lng, lat]); markers are placed at a
centroid and therefore carry (lat, lon).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LayerFeature:
    """A non-point shape (polygon, line, ...) drawn underneath the markers.

    Attributes:
        feature_id: Unique identifier within the layer.
        geometry_type: GeoJSON geometry type.
        coordinates: GeoJSON-style coordinate arrays ([lng, lat]), or the
            member list for a GeometryCollection.
        properties: Source feature properties.
        style: Rendering hints (color, weight, fillColor, fillOpacity).
    """

    feature_id: str
    geometry_type: str
    coordinates: list
    properties: dict
    style: dict | None = None


@dataclass
class Marker:
    """A circle marker at a feature centroid.

    Attributes:
        marker_id: Unique identifier within the layer.
        lat: Latitude of the centroid.
        lon: Longitude of the centroid.
        label: Bold popup title (feature name).
        detail: Popup body text, e.g. ``"HVI: 82"`` or ``"N/A"``.
        style: Rendering hints (radius, fillColor, color, weight, fillOpacity).
    """

    marker_id: str
    lat: float
    lon: float
    label: str
    detail: str = ""
    style: dict | None = None


@dataclass
class LayerGroup:
    """Everything the map needs to render one dataset or overlay.

    Attributes:
        layer_id: Dataset or overlay identifier ("food", "nasa_raster", ...).
        name: Human-readable display name.
        source_format: "geojson", "wmts" or "nasa-power".
        features: Styled shapes.
        markers: One marker per point record.
        tile_url: URL template for raster overlays, else None.
        opacity: Rendering opacity (0.0 to 1.0).
        z_index: Draw order (higher = on top).
        metadata: Arbitrary key-value metadata (tile zoom limits, counts).
        created_at: ISO8601 creation timestamp.
    """

    layer_id: str
    name: str
    source_format: str
    features: list[LayerFeature] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    tile_url: str | None = None
    opacity: float = 1.0
    z_index: int = 0
    metadata: dict = field(default_factory=dict)
    created_at: str = ""

    @property
    def marker_count(self) -> int:
        return len(self.markers)

    @property
    def is_empty(self) -> bool:
        return not self.features and not self.markers and self.tile_url is None


def placeholder(layer_id: str, name: str = "") -> LayerGroup:
    """Empty layer group used when a dataset failed to load."""
    return LayerGroup(layer_id=layer_id, name=name or layer_id, source_format="geojson")
