"""Geometry normalization for GeoJSON and Socrata feature payloads.

Socrata's ``.geojson`` exports are not always strict: geometries can arrive
JSON-encoded as strings, sit under ``the_geom`` instead of ``geometry``, or
the whole record can be flat with no ``properties`` wrapper. Everything here
turns such records into ``NormalizedFeature`` values whose geometry is always
a parsed mapping.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

from loguru import logger

from mapengine.errors import MalformedGeometry


@dataclass
class NormalizedFeature:
    """A feature with a guaranteed-parsed geometry.

    Attributes:
        index: Position of the feature in the source payload.
        properties: Feature properties (string keys).
        geometry: GeoJSON geometry mapping, coordinates in [lng, lat] order.
    """

    index: int
    geometry: dict
    properties: dict = field(default_factory=dict)

    @property
    def geometry_type(self) -> str:
        return str(self.geometry.get("type", ""))


def decode_geometry(value: Any) -> dict | None:
    """Return ``value`` as a geometry mapping.

    ``None`` means "no geometry" and is not an error. Mappings are returned
    unchanged.

    Raises:
        MalformedGeometry: If a string does not decode to a JSON object, or
            the value is of an unsupported type.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, (str, bytes)):
        try:
            decoded = json.loads(value)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedGeometry(f"geometry string is not JSON: {e}") from e
        if decoded is None:
            return None
        if not isinstance(decoded, dict):
            raise MalformedGeometry(
                f"geometry string decoded to {type(decoded).__name__}, expected object"
            )
        return decoded
    raise MalformedGeometry(f"unsupported geometry value: {type(value).__name__}")


def parse_geometry(value: Any) -> dict | None:
    """Lenient form of :func:`decode_geometry`: logs and returns None on failure."""
    try:
        return decode_geometry(value)
    except MalformedGeometry as e:
        logger.warning(f"Malformed geometry skipped: {e}")
        return None


def raw_features(payload: Any) -> list:
    """Extract the feature list from a FeatureCollection or a bare array."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        if payload.get("type") == "Feature":
            return [payload]
        features = payload.get("features")
        if isinstance(features, list):
            return features
    return []


def normalize_feature(raw: Any, index: int) -> NormalizedFeature | None:
    """Normalize a single raw record, or None if it has no usable geometry."""
    if not isinstance(raw, dict):
        logger.warning(f"Feature {index} is not an object, skipped")
        return None

    geom_value = raw.get("geometry")
    if geom_value is None:
        geom_value = raw.get("the_geom")
    if geom_value is None:
        logger.warning(f"Feature {index} has no geometry, skipped")
        return None
    geometry = parse_geometry(geom_value)
    if geometry is None:
        return None

    props = raw.get("properties")
    if isinstance(props, dict):
        properties = dict(props)
    else:
        # Flat Socrata record: every non-geometry column is a property
        properties = {
            k: v for k, v in raw.items()
            if k not in ("geometry", "the_geom", "type")
        }

    return NormalizedFeature(index=index, geometry=geometry, properties=properties)


def normalize_features(raws: Iterable[Any]) -> list[NormalizedFeature]:
    """Normalize every record, dropping those whose geometry cannot be parsed."""
    features: list[NormalizedFeature] = []
    for idx, raw in enumerate(raws):
        feature = normalize_feature(raw, idx)
        if feature is not None:
            features.append(feature)
    return features
