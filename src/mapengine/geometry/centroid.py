"""Representative (lat, lon) extraction for arbitrary GeoJSON geometries.

Coordinate convention:
    Geometry arrays are GeoJSON ``[lng, lat]``. Every centroid returned here
    is ``(lat, lng)``. The swap happens in exactly one place,
    ``_to_latlng``.

Polygon centroids are a plain vertex average of the outer ring (closing
vertex included), not an area-weighted centroid. Good enough for marker
placement; not geometrically exact for irregular shapes.
"""

from __future__ import annotations

import math
from typing import Any, NamedTuple, Sequence

from mapengine.errors import CentroidUnresolvable

# Cap for the fallback coordinate search. Valid GeoJSON nests at most four
# levels (MultiPolygon).
DEFAULT_MAX_DEPTH = 32


class Centroid(NamedTuple):
    """A single representative point for a feature."""

    lat: float
    lon: float


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_latlng(lng: Any, lat: Any) -> Centroid | None:
    """Validate a GeoJSON ``[lng, lat]`` pair and swap it into a Centroid."""
    try:
        lng_f = float(lng)
        lat_f = float(lat)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return None
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0):
        return None
    return Centroid(lat_f, lng_f)


def _pair(coords: Any) -> Centroid | None:
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    if not (_is_number(coords[0]) and _is_number(coords[1])):
        return None
    return _to_latlng(coords[0], coords[1])


def average_ring(ring: Any) -> Centroid | None:
    """Vertex average of a ring of ``[lng, lat]`` positions.

    Non-finite or malformed vertices are skipped. Returns None when no vertex
    survives.
    """
    if not isinstance(ring, (list, tuple)):
        return None
    sum_lng = 0.0
    sum_lat = 0.0
    n = 0
    for vertex in ring:
        if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
            continue
        lng, lat = vertex[0], vertex[1]
        if not (_is_number(lng) and _is_number(lat)):
            continue
        if not (math.isfinite(lng) and math.isfinite(lat)):
            continue
        sum_lng += lng
        sum_lat += lat
        n += 1
    if n == 0:
        return None
    return _to_latlng(sum_lng / n, sum_lat / n)


def _first(seq: Any) -> Any:
    if isinstance(seq, (list, tuple)) and seq:
        return seq[0]
    return None


def _point(geom: dict) -> Centroid | None:
    return _pair(geom.get("coordinates"))


def _multipoint(geom: dict) -> Centroid | None:
    return _pair(_first(geom.get("coordinates")))


def _polygon(geom: dict) -> Centroid | None:
    return average_ring(_first(geom.get("coordinates")))


def _multipolygon(geom: dict) -> Centroid | None:
    # Only the first member polygon counts
    return average_ring(_first(_first(geom.get("coordinates"))))


def _geometry_collection(geom: dict) -> Centroid | None:
    members = geom.get("geometries")
    if not isinstance(members, (list, tuple)):
        return None
    for member in members:
        if not isinstance(member, dict):
            continue
        kind = member.get("type")
        if kind == "Point":
            found = _point(member)
            if found is not None:
                return found
        elif kind == "Polygon" and _first(member.get("coordinates")) is not None:
            return _polygon(member)
    return None


_HANDLERS = {
    "Point": _point,
    "MultiPoint": _multipoint,
    "Polygon": _polygon,
    "MultiPolygon": _multipolygon,
    "GeometryCollection": _geometry_collection,
}


def find_first_pair(node: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> tuple[float, float] | None:
    """Depth-first search for the first array starting with two numbers.

    Walks lists in order and mappings in key order. Nodes deeper than
    ``max_depth`` are not visited.
    """
    if max_depth < 0:
        return None
    if isinstance(node, (list, tuple)):
        if len(node) >= 2 and _is_number(node[0]) and _is_number(node[1]):
            return (node[0], node[1])
        for child in node:
            found = find_first_pair(child, max_depth - 1)
            if found is not None:
                return found
        return None
    if isinstance(node, dict):
        for child in node.values():
            found = find_first_pair(child, max_depth - 1)
            if found is not None:
                return found
    return None


def extract_centroid(geometry: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Centroid | None:
    """Derive one representative (lat, lon) for a geometry, or None.

    Dispatches on the geometry ``type``. When the type is unknown or its
    rule finds nothing, falls back to the first coordinate-looking pair
    anywhere in the structure.
    """
    if not isinstance(geometry, dict):
        return None

    handler = _HANDLERS.get(geometry.get("type"))
    if handler is not None:
        found = handler(geometry)
        if found is not None:
            return found

    first = find_first_pair(geometry, max_depth)
    if first is None:
        return None
    return _to_latlng(first[0], first[1])


def require_centroid(geometry: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Centroid:
    """Like :func:`extract_centroid` but raises when nothing can be derived.

    Raises:
        CentroidUnresolvable: If no valid (lat, lon) exists in ``geometry``.
    """
    found = extract_centroid(geometry, max_depth)
    if found is None:
        kind = geometry.get("type") if isinstance(geometry, dict) else type(geometry).__name__
        raise CentroidUnresolvable(f"no valid coordinate in {kind!r} geometry")
    return found


def bounds(points: Sequence[Centroid]) -> tuple[Centroid, Centroid] | None:
    """South-west and north-east corners enclosing ``points``."""
    if not points:
        return None
    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    return Centroid(min(lats), min(lons)), Centroid(max(lats), max(lons))
