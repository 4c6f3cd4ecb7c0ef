"""Geometry normalization and centroid extraction.

Coordinates follow GeoJSON ``[lng, lat]`` on the way in and ``(lat, lon)``
on the way out.
"""

from mapengine.geometry.centroid import Centroid, extract_centroid, require_centroid
from mapengine.geometry.parser import (
    NormalizedFeature,
    decode_geometry,
    normalize_features,
    parse_geometry,
    raw_features,
)

__all__ = [
    "Centroid",
    "NormalizedFeature",
    "decode_geometry",
    "extract_centroid",
    "normalize_features",
    "parse_geometry",
    "raw_features",
    "require_centroid",
]
