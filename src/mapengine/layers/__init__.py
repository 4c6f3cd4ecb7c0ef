"""Map layer groups — what the map collaborator renders.

Each dataset becomes one LayerGroup: styled shapes from the source
geometries plus one marker per point record. Raster and climate overlays
are LayerGroups too.
"""

from mapengine.layers.layer import LayerFeature, LayerGroup, Marker, placeholder
from mapengine.layers.manager import LayerManager

__all__ = ["LayerFeature", "LayerGroup", "LayerManager", "Marker", "placeholder"]
