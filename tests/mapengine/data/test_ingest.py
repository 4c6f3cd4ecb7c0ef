"""Unit tests for DatasetIngestor — fetch, normalize, publish, degrade."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from mapengine.data.aggregate import compute_aggregates
from mapengine.data.datasets import heat_dataset, waste_dataset
from mapengine.data.ingest import DatasetIngestor, fetch_json
from mapengine.data.state import DashboardState
from mapengine.errors import FetchFailure

pytestmark = pytest.mark.unit

HEAT_URL = "https://data.test/heat.geojson"
WASTE_URL = "https://data.test/waste.geojson"


def _run(coro):
    """Run an async coroutine synchronously on the current event loop."""
    loop = asyncio.get_event_loop()
    return loop.run_until_complete(coro)


def _square(lng, lat, size=0.01):
    return {
        "type": "Polygon",
        "coordinates": [[
            [lng, lat], [lng + size, lat], [lng + size, lat + size],
            [lng, lat + size], [lng, lat],
        ]],
    }


HEAT_PAYLOAD = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "geometry": _square(-73.95, 40.80), "properties": {"neighborhood": "Harlem", "hvi_score": 80}},
        {"type": "Feature", "geometry": _square(-73.99, 40.70), "properties": {"neighborhood": "DUMBO", "HVI": "40"}},
        {"type": "Feature", "geometry": _square(-73.85, 40.75), "properties": {"neighborhood": "Corona"}},
    ],
}

WASTE_PAYLOAD = [
    {"type": "Feature", "geometry": "{bad json", "properties": {"name": "Broken", "tons_per_day": 999}},
    {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-73.88, 40.81]},
     "properties": {"name": "Hunts Point", "tons_per_day": 100}},
    {"type": "Feature", "geometry": json.dumps({"type": "Point", "coordinates": [-73.92, 40.66]}),
     "properties": {"facility": "Varick", "tons_per_day": "300"}},
]


class TestIngestHeat:
    """Heat dataset end to end."""

    def test_three_features_with_null_score(self, routes):
        transport = routes({"/heat.geojson": HEAT_PAYLOAD})
        state = DashboardState()
        ingestor = DatasetIngestor(heat_dataset(HEAT_URL), state, client=transport.client())

        assert _run(ingestor.ingest()) is True
        records = state.records_for("heat")
        assert len(records) == 3
        assert [r.metric for r in records] == [80.0, 40.0, None]
        assert compute_aggregates(heat=records).avg_heat == 60

        layer = state.layers["heat"]
        assert layer.marker_count == 3
        assert [m.detail for m in layer.markers] == ["HVI: 80", "HVI: 40", "HVI: N/A"]
        assert len(layer.features) == 3
        assert layer.features[0].style["fillColor"] == "#d73027"

    def test_records_are_lat_lon(self, routes):
        transport = routes({"/heat.geojson": HEAT_PAYLOAD})
        state = DashboardState()
        _run(DatasetIngestor(heat_dataset(HEAT_URL), state, client=transport.client()).ingest())
        first = state.records_for("heat")[0]
        assert first.name == "Harlem"
        assert first.lat == pytest.approx(40.804)
        assert first.lon == pytest.approx(-73.946)


class TestIngestWaste:
    """Waste dataset with a malformed geometry string."""

    def test_malformed_feature_skipped(self, routes):
        transport = routes({"/waste.geojson": WASTE_PAYLOAD})
        state = DashboardState()
        ingestor = DatasetIngestor(waste_dataset(WASTE_URL), state, client=transport.client())

        assert _run(ingestor.ingest()) is True
        assert ingestor.records == state.records_for("waste")
        assert len(ingestor.records) == 2
        assert state.layers["waste"].marker_count == 2
        assert state.layers["waste"].features == []
        assert compute_aggregates(waste=ingestor.records).total_waste == 400
        assert [r.name for r in ingestor.records] == ["Hunts Point", "Varick"]

    def test_unresolvable_centroid_skipped(self, routes):
        payload = [
            {"geometry": {"type": "Point", "coordinates": ["x", "y"]}, "properties": {"tons_per_day": 1}},
            {"geometry": {"type": "Point", "coordinates": [-73.9, 40.7]}, "properties": {"tons_per_day": 2}},
        ]
        transport = routes({"/waste.geojson": payload})
        state = DashboardState()
        _run(DatasetIngestor(waste_dataset(WASTE_URL), state, client=transport.client()).ingest())
        assert [r.metric for r in state.records_for("waste")] == [2.0]
        assert state.records_for("waste")[0].name == "waste-1"


class TestFetchFailures:
    """Failures degrade to an empty collection and still notify."""

    def _ingest(self, routes, answer):
        transport = routes({"/heat.geojson": answer})
        state = DashboardState()
        completed = []
        ingestor = DatasetIngestor(
            heat_dataset(HEAT_URL), state,
            client=transport.client(), on_complete=completed.append,
        )
        ok = _run(ingestor.ingest())
        return ok, state, completed

    def test_http_error(self, routes):
        ok, state, completed = self._ingest(routes, httpx.Response(503))
        assert ok is False
        assert state.records_for("heat") == ()
        assert state.layers["heat"].is_empty
        assert "heat" not in state.loaded
        assert completed == ["heat"]

    def test_transport_error(self, routes):
        ok, state, completed = self._ingest(routes, httpx.ConnectError("refused"))
        assert ok is False
        assert state.records_for("heat") == ()
        assert completed == ["heat"]

    def test_non_json_body(self, routes):
        ok, state, _ = self._ingest(routes, httpx.Response(200, content=b"<html>oops</html>"))
        assert ok is False
        assert state.records_for("heat") == ()

    def test_failure_replaces_previous_collection(self, routes):
        state = DashboardState()
        good = routes({"/heat.geojson": HEAT_PAYLOAD})
        _run(DatasetIngestor(heat_dataset(HEAT_URL), state, client=good.client()).ingest())
        assert len(state.records_for("heat")) == 3

        bad = routes({"/heat.geojson": httpx.Response(500)})
        _run(DatasetIngestor(heat_dataset(HEAT_URL), state, client=bad.client()).ingest())
        assert state.records_for("heat") == ()

    def test_success_notifies(self, routes):
        transport = routes({"/heat.geojson": HEAT_PAYLOAD})
        completed = []
        ingestor = DatasetIngestor(
            heat_dataset(HEAT_URL), DashboardState(),
            client=transport.client(), on_complete=completed.append,
        )
        _run(ingestor.ingest())
        assert completed == ["heat"]


class TestFetchJson:
    def test_raises_fetch_failure_with_status(self, routes):
        transport = routes({"/x": httpx.Response(404)})
        with pytest.raises(FetchFailure) as exc:
            _run(fetch_json("https://data.test/x", "x", client=transport.client()))
        assert "404" in str(exc.value)
        assert exc.value.source == "x"

    def test_sends_params(self, routes):
        transport = routes({"/x": {"ok": True}})
        assert _run(fetch_json("https://data.test/x", "x", client=transport.client(), params={"a": 1})) == {"ok": True}
        assert transport.requests[0].url.params["a"] == "1"
