"""Export a LayerGroup to a GeoJSON FeatureCollection dict (RFC 7946).

Shapes are emitted as-is ([lng, lat] already). Markers become Point
features, swapping the stored (lat, lon) back to [lng, lat].
"""

from __future__ import annotations

from mapengine.layers.layer import LayerFeature, LayerGroup, Marker


def export_geojson(layer: LayerGroup) -> dict:
    """Export a LayerGroup to a GeoJSON FeatureCollection dict."""
    features = [_feature_to_geojson(f) for f in layer.features]
    features.extend(_marker_to_geojson(m) for m in layer.markers)

    collection = {
        "type": "FeatureCollection",
        "name": layer.name,
        "features": features,
    }
    if layer.tile_url is not None:
        collection["tile_url"] = layer.tile_url
        collection["tile_options"] = dict(layer.metadata)
    return collection


def _geometry(feature: LayerFeature) -> dict:
    if feature.geometry_type == "GeometryCollection":
        return {"type": "GeometryCollection", "geometries": feature.coordinates}
    return {"type": feature.geometry_type, "coordinates": feature.coordinates}


def _feature_to_geojson(feature: LayerFeature) -> dict:
    return {
        "type": "Feature",
        "id": feature.feature_id,
        "geometry": _geometry(feature),
        "properties": {**feature.properties, "style": feature.style or {}},
    }


def _marker_to_geojson(marker: Marker) -> dict:
    return {
        "type": "Feature",
        "id": marker.marker_id,
        "geometry": {"type": "Point", "coordinates": [marker.lon, marker.lat]},
        "properties": {
            "label": marker.label,
            "detail": marker.detail,
            "marker": True,
            "style": marker.style or {},
        },
    }
