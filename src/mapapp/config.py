"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from mapengine.data.climate import GIBS_LAYER, GIBS_MAX_NATIVE_ZOOM, POWER_END, POWER_START, POWER_URL
from mapengine.data.datasets import FOOD_URL, HEAT_URL, WASTE_URL
from mapengine.geometry.centroid import DEFAULT_MAX_DEPTH


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "NYC Resilience Map"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Dataset endpoints (Socrata GeoJSON exports)
    food_url: str = FOOD_URL
    heat_url: str = HEAT_URL
    waste_url: str = WASTE_URL

    # None = no timeout; a hung fetch only delays its own dataset
    fetch_timeout: Optional[float] = None

    # NASA POWER climate points
    nasa_power_url: str = POWER_URL
    nasa_power_start: str = POWER_START   # YYYYMMDD
    nasa_power_end: str = POWER_END

    # NASA GIBS raster overlay
    gibs_layer: str = GIBS_LAYER
    gibs_max_native_zoom: int = GIBS_MAX_NATIVE_ZOOM

    # Geometry
    centroid_max_depth: int = DEFAULT_MAX_DEPTH

    # Initial map view
    map_center_lat: float = 40.7128
    map_center_lng: float = -74.0060
    map_zoom: int = 11

    # Load datasets on startup (disable for tests / offline)
    load_on_startup: bool = True


settings = Settings()
