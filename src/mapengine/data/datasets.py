"""Dataset definitions — where each dataset lives and how to read it.

Property lookups try keys in order; the first key that is present and
non-null wins. The orders here are canonical for each dataset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

FOOD_URL = "https://data.ny.gov/resource/9a8c-vfzj.geojson?$limit=5000"
WASTE_URL = "https://data.cityofnewyork.us/resource/8znf-7b2c.geojson?$limit=5000"
HEAT_URL = "https://data.cityofnewyork.us/resource/4mhf-duep.geojson?$limit=500"

HEAT = "heat"
FOOD = "food"
WASTE = "waste"
NASA_RASTER = "nasa_raster"
NASA_POINTS = "nasa_points"

DATASET_IDS = (FOOD, HEAT, WASTE)
OVERLAY_IDS = (NASA_RASTER, NASA_POINTS)

# Heat vulnerability colour buckets, highest first: (exclusive lower bound, colour)
HEAT_BUCKETS = (
    (75, "#d73027"),
    (50, "#fc8d59"),
    (25, "#fee08b"),
)
HEAT_BASE_COLOR = "#ffffbf"


def heat_color(score: float | None) -> str:
    """Fill colour for an HVI score; missing scores bucket as 0."""
    value = score or 0
    for threshold, color in HEAT_BUCKETS:
        if value > threshold:
            return color
    return HEAT_BASE_COLOR


def first_present(properties: dict, keys: tuple[str, ...]) -> Any:
    """Value of the first key in ``keys`` that is present and not None."""
    for key in keys:
        value = properties.get(key)
        if value is not None:
            return value
    return None


def _fixed(style: dict) -> Callable[[float | None], dict]:
    return lambda metric: dict(style)


def _heat_shape(metric: float | None) -> dict:
    return {"color": "#ff5e5e", "weight": 1.2, "fillColor": heat_color(metric), "fillOpacity": 0.6}


def _heat_marker(metric: float | None) -> dict:
    return {
        "radius": 9, "fillColor": heat_color(metric), "color": "#111",
        "weight": 1.4, "fillOpacity": 0.98,
    }


@dataclass(frozen=True)
class DatasetSpec:
    """How to fetch and interpret one dataset.

    Attributes:
        dataset_id: "food", "heat" or "waste".
        name: Display name.
        url: GeoJSON endpoint.
        metric_keys: Property names tried in order for the metric.
        name_keys: Property names tried in order for the marker label.
        detail_keys: Fallback popup text keys when the metric is missing.
        metric_prefix: Text placed before the metric in the popup.
        missing_text: Popup text when neither metric nor detail exist.
        shape_style: metric -> style dict for non-point shapes.
        marker_style: metric -> style dict for markers.
    """

    dataset_id: str
    name: str
    url: str
    metric_keys: tuple[str, ...]
    name_keys: tuple[str, ...]
    detail_keys: tuple[str, ...] = ()
    metric_prefix: str = ""
    missing_text: str = ""
    shape_style: Callable[[float | None], dict] = field(default=_fixed({}), compare=False)
    marker_style: Callable[[float | None], dict] = field(default=_fixed({}), compare=False)

    def resolve_name(self, properties: dict, index: int) -> str:
        value = first_present(properties, self.name_keys)
        if value is None or value == "":
            return f"{self.dataset_id}-{index}"
        return str(value)

    def describe(self, properties: dict, metric: float | None) -> str:
        """Popup body text for a feature."""
        if metric is not None:
            return f"{self.metric_prefix}{format_number(metric)}"
        if self.detail_keys:
            detail = first_present(properties, self.detail_keys)
            if detail is not None:
                return str(detail)
        return f"{self.metric_prefix}{self.missing_text}"


def format_number(value: float) -> str:
    """Render 80.0 as "80" and 12.5 as "12.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def heat_dataset(url: str = HEAT_URL) -> DatasetSpec:
    return DatasetSpec(
        dataset_id=HEAT,
        name="Heat Vulnerability",
        url=url,
        metric_keys=("hvi_score", "HVI", "hvi", "hviScore"),
        name_keys=("neighborhood",),
        metric_prefix="HVI: ",
        missing_text="N/A",
        shape_style=_heat_shape,
        marker_style=_heat_marker,
    )


def food_dataset(url: str = FOOD_URL) -> DatasetSpec:
    return DatasetSpec(
        dataset_id=FOOD,
        name="Food Access",
        url=url,
        metric_keys=("score",),
        name_keys=("businessname", "name"),
        detail_keys=("type",),
        shape_style=_fixed({"color": "#00d4ff", "weight": 2, "fillColor": "#00d4ff", "fillOpacity": 0.25}),
        marker_style=_fixed({
            "radius": 7, "fillColor": "#00d4ff", "color": "#002b3a",
            "weight": 1.2, "fillOpacity": 0.95,
        }),
    )


def waste_dataset(url: str = WASTE_URL) -> DatasetSpec:
    return DatasetSpec(
        dataset_id=WASTE,
        name="Waste Sites",
        url=url,
        metric_keys=("tons_per_day",),
        name_keys=("name", "facility"),
        detail_keys=("description",),
        shape_style=_fixed({"color": "#666", "weight": 1, "fillOpacity": 0.15}),
        marker_style=_fixed({
            "radius": 7, "fillColor": "#888", "color": "#111",
            "weight": 1.2, "fillOpacity": 0.95,
        }),
    )
