"""Auxiliary overlays — NASA POWER climate points and the GIBS raster.

All data sources are free with no API keys:
- NASA POWER daily point API for 2 m max/min air temperature
- NASA GIBS WMTS for VIIRS true-colour imagery

POWER returns ``properties.parameter.<METRIC>`` as a mapping of
``YYYYMMDD`` -> value. Values can be null and are dropped before
averaging.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, NamedTuple

import httpx
from loguru import logger

from mapengine.data.datasets import NASA_POINTS, NASA_RASTER
from mapengine.data.ingest import fetch_json
from mapengine.errors import FetchFailure
from mapengine.layers.layer import LayerGroup, Marker

POWER_URL = "https://power.larc.nasa.gov/api/temporal/daily/point"
POWER_PARAMETERS = ("T2M_MAX", "T2M_MIN")
POWER_START = "20250101"
POWER_END = "20250110"

GIBS_TEMPLATE = (
    "https://gibs.earthdata.nasa.gov/wmts/epsg3857/best/{layer}/default/{date}/"
    "GoogleMapsCompatible_Level9/{{z}}/{{y}}/{{x}}.jpg"
)
GIBS_LAYER = "VIIRS_SNPP_CorrectedReflectance_TrueColor"
GIBS_MAX_NATIVE_ZOOM = 9


class ClimateSite(NamedTuple):
    name: str
    lat: float
    lon: float


BOROUGHS = (
    ClimateSite("Manhattan", 40.7831, -73.9712),
    ClimateSite("Brooklyn", 40.6782, -73.9442),
    ClimateSite("Queens", 40.7282, -73.7949),
    ClimateSite("Bronx", 40.8448, -73.8648),
    ClimateSite("Staten Island", 40.5795, -74.1502),
)

CITY_CENTER = ClimateSite("New York City", 40.7128, -74.0060)


@dataclass(frozen=True)
class ClimateSummary:
    """Average daily max/min temperature at one site (degrees C)."""

    site: ClimateSite
    avg_max: float | None
    avg_min: float | None

    def describe(self) -> str:
        def fmt(v: float | None) -> str:
            return "N/A" if v is None else f"{v:.1f}"
        return f"Avg T2M_MAX: {fmt(self.avg_max)} °C, Avg T2M_MIN: {fmt(self.avg_min)} °C"


@dataclass
class ClimateSeries:
    """Daily temperature series for the chart's left axis."""

    dates: list[str] = field(default_factory=list)
    t_max: list[float | None] = field(default_factory=list)
    t_min: list[float | None] = field(default_factory=list)


def parameter_series(payload: Any, name: str) -> dict:
    """``properties.parameter.<name>`` or an empty mapping."""
    if not isinstance(payload, dict):
        return {}
    props = payload.get("properties")
    if not isinstance(props, dict):
        return {}
    params = props.get("parameter")
    if not isinstance(params, dict):
        return {}
    series = params.get(name)
    return series if isinstance(series, dict) else {}


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def numeric_values(series: dict) -> list[float]:
    """Series values with nulls and non-numeric entries removed."""
    values = []
    for v in series.values():
        number = _as_number(v)
        if number is not None:
            values.append(number)
    return values


def average(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


class ClimateClient:
    """NASA POWER daily point queries."""

    def __init__(
        self,
        url: str = POWER_URL,
        start: str = POWER_START,
        end: str = POWER_END,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url = url
        self.start = start
        self.end = end
        self._client = client
        self._timeout = timeout

    def params(self, lat: float, lon: float) -> dict:
        return {
            "parameters": ",".join(POWER_PARAMETERS),
            "community": "RE",
            "longitude": lon,
            "latitude": lat,
            "start": self.start,
            "end": self.end,
            "format": "JSON",
        }

    async def _get(self, site: ClimateSite) -> Any:
        return await fetch_json(
            self.url, f"POWER {site.name}",
            client=self._client, timeout=self._timeout,
            params=self.params(site.lat, site.lon),
        )

    async def fetch_summary(self, site: ClimateSite) -> ClimateSummary:
        """Average max/min temperature at ``site``.

        Raises:
            FetchFailure: If the POWER request fails.
        """
        payload = await self._get(site)
        return ClimateSummary(
            site=site,
            avg_max=average(numeric_values(parameter_series(payload, "T2M_MAX"))),
            avg_min=average(numeric_values(parameter_series(payload, "T2M_MIN"))),
        )

    async def fetch_series(self, site: ClimateSite = CITY_CENTER) -> ClimateSeries:
        """Daily max/min series at ``site``; empty on failure."""
        try:
            payload = await self._get(site)
        except FetchFailure as e:
            logger.error(f"NASA POWER series fetch failed: {e}")
            return ClimateSeries()

        t_max = parameter_series(payload, "T2M_MAX")
        t_min = parameter_series(payload, "T2M_MIN")
        dates = list(t_max.keys())
        return ClimateSeries(
            dates=dates,
            t_max=[_as_number(t_max.get(d)) for d in dates],
            t_min=[_as_number(t_min.get(d)) for d in dates],
        )

    async def _summary_or_none(self, site: ClimateSite) -> ClimateSummary | None:
        try:
            return await self.fetch_summary(site)
        except FetchFailure as e:
            logger.error(f"POWER point error for {site.name}: {e}")
            return None

    async def load_points(self, sites: tuple[ClimateSite, ...] = BOROUGHS) -> LayerGroup:
        """Build the climate point overlay. Sites that fail are left out."""
        results = await asyncio.gather(*(self._summary_or_none(s) for s in sites))
        markers = []
        for summary in results:
            if summary is None:
                continue
            markers.append(Marker(
                marker_id=f"{NASA_POINTS}-{summary.site.name.lower().replace(' ', '-')}",
                lat=summary.site.lat,
                lon=summary.site.lon,
                label=summary.site.name,
                detail=summary.describe(),
                style={
                    "radius": 7, "fillColor": "#ffd24d", "color": "#6b4500",
                    "weight": 1, "fillOpacity": 0.95,
                },
            ))
            logger.debug(f"NASA POWER point added: {summary.site.name}")
        logger.info(f"NASA POWER points ready: {len(markers)}/{len(sites)} markers")
        return LayerGroup(
            layer_id=NASA_POINTS,
            name="NASA POWER Climate Points",
            source_format="nasa-power",
            markers=markers,
            z_index=20,
        )


def build_raster_overlay(
    day: date | None = None,
    layer: str = GIBS_LAYER,
    template: str = GIBS_TEMPLATE,
    min_zoom: int = 2,
    max_native_zoom: int = GIBS_MAX_NATIVE_ZOOM,
    max_zoom: int = 19,
) -> LayerGroup:
    """GIBS true-colour tile layer for ``day`` (today by default).

    Tiles only exist up to ``max_native_zoom``; the map scales them
    beyond that.
    """
    day = day or date.today()
    url = template.format(layer=layer, date=day.isoformat())
    logger.debug(f"NASA raster prepared: {url} maxNativeZoom={max_native_zoom}")
    return LayerGroup(
        layer_id=NASA_RASTER,
        name="NASA GIBS True Color",
        source_format="wmts",
        tile_url=url,
        z_index=0,
        metadata={
            "minZoom": min_zoom,
            "maxNativeZoom": max_native_zoom,
            "maxZoom": max_zoom,
            "attribution": "NASA GIBS",
        },
    )
