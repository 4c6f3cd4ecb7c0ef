"""Tests for LayerManager — add/remove/list, zoom, fit bounds, export."""

import json

import pytest

from mapengine.layers import LayerFeature, LayerGroup, LayerManager, Marker

pytestmark = pytest.mark.unit


@pytest.fixture
def manager():
    return LayerManager()


@pytest.fixture
def sample_layer():
    return LayerGroup(
        layer_id="heat",
        name="Heat Vulnerability",
        source_format="geojson",
        features=[LayerFeature("s1", "Polygon", [[[0, 0], [1, 0], [1, 1], [0, 0]]], {"hvi": 80})],
        markers=[Marker("heat-0", 40.7, -74.0, "Harlem", "HVI: 80")],
        z_index=10,
    )


class TestLayerManager:
    """LayerManager operations."""

    def test_add_layer(self, manager, sample_layer):
        assert manager.add_layer(sample_layer) == "heat"
        assert manager.has_layer("heat")
        assert manager.get_layer("heat") is sample_layer

    def test_add_replaces_same_id(self, manager, sample_layer):
        manager.add_layer(sample_layer)
        newer = LayerGroup("heat", "Heat", "geojson")
        manager.add_layer(newer)
        assert manager.get_layer("heat") is newer
        assert len(manager.list_layers()) == 1

    def test_remove_layer(self, manager, sample_layer):
        manager.add_layer(sample_layer)
        assert manager.remove_layer("heat") is True
        assert not manager.has_layer("heat")
        assert manager.remove_layer("heat") is False

    def test_list_layers_by_z_index(self, manager):
        manager.add_layer(LayerGroup("points", "P", "nasa-power", z_index=20))
        manager.add_layer(LayerGroup("raster", "R", "wmts", z_index=0))
        manager.add_layer(LayerGroup("food", "F", "geojson", z_index=10))
        assert [l.layer_id for l in manager.list_layers()] == ["raster", "food", "points"]

    def test_set_zoom_clamped(self, manager):
        manager.set_zoom(25)
        assert manager.zoom == 19
        manager.set_zoom(-3)
        assert manager.zoom == 0

    def test_fit_bounds(self, manager):
        a = LayerGroup("a", "A", "geojson", markers=[Marker("1", 40.5, -74.2, "x")])
        b = LayerGroup("b", "B", "geojson", markers=[Marker("2", 40.9, -73.8, "y")])
        assert manager.fit_bounds([a, b]) is True
        sw, ne = manager.viewport
        assert (sw.lat, sw.lon) == (40.5, -74.2)
        assert (ne.lat, ne.lon) == (40.9, -73.8)
        assert manager.center == pytest.approx((40.7, -74.0))

    def test_fit_bounds_nothing(self, manager):
        center = manager.center
        assert manager.fit_bounds([LayerGroup("a", "A", "geojson")]) is False
        assert manager.center == center
        assert manager.viewport is None

    def test_export_geojson(self, manager, sample_layer):
        manager.add_layer(sample_layer)
        data = json.loads(manager.export_layer("heat", "geojson"))
        assert data["type"] == "FeatureCollection"
        assert len(data["features"]) == 2

    def test_export_missing_layer(self, manager):
        with pytest.raises(KeyError):
            manager.export_layer("nope")

    def test_export_unsupported_format(self, manager, sample_layer):
        manager.add_layer(sample_layer)
        with pytest.raises(ValueError):
            manager.export_layer("heat", "kml")
