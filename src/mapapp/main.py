"""NYC Resilience Map — dashboard server.

Main FastAPI application. Run with ``uvicorn mapapp.main:app``.
"""

import asyncio
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from mapapp.config import Settings, settings
from mapapp.routers import dashboard_router
from mapengine.control import DashboardController
from mapengine.data.climate import ClimateClient, build_raster_overlay
from mapengine.data.datasets import food_dataset, heat_dataset, waste_dataset
from mapengine.layers import LayerManager


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def create_controller(cfg: Settings, client: httpx.AsyncClient | None = None) -> DashboardController:
    """Build a DashboardController wired from settings."""
    climate = ClimateClient(
        url=cfg.nasa_power_url,
        start=cfg.nasa_power_start,
        end=cfg.nasa_power_end,
        client=client,
        timeout=cfg.fetch_timeout,
    )
    return DashboardController(
        (
            food_dataset(cfg.food_url),
            heat_dataset(cfg.heat_url),
            waste_dataset(cfg.waste_url),
        ),
        map_view=LayerManager(center=(cfg.map_center_lat, cfg.map_center_lng), zoom=cfg.map_zoom),
        climate=climate,
        client=client,
        timeout=cfg.fetch_timeout,
        max_depth=cfg.centroid_max_depth,
        raster_factory=lambda: build_raster_overlay(
            layer=cfg.gibs_layer, max_native_zoom=cfg.gibs_max_native_zoom,
        ),
    )


def _log_startup(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.info("Startup load cancelled")
    elif task.exception() is not None:
        logger.opt(exception=task.exception()).error("Startup load failed")
    else:
        logger.info("Startup load finished")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging("DEBUG" if settings.debug else settings.log_level)
    logger.info(f"{settings.app_name} - initializing")

    client = httpx.AsyncClient(timeout=settings.fetch_timeout)
    controller = create_controller(settings, client)
    app.state.dashboard = controller

    startup = None
    if settings.load_on_startup:
        # Serving starts before the datasets arrive
        startup = asyncio.create_task(controller.start())
        startup.add_done_callback(_log_startup)
    else:
        logger.info("Dataset load on startup disabled")

    logger.info(f"{settings.app_name} online")

    yield

    if startup is not None and not startup.done():
        startup.cancel()
        await asyncio.gather(startup, return_exceptions=True)
    controller.close()
    await client.aclose()
    logger.info(f"{settings.app_name} shutting down...")


app = FastAPI(
    title="NYC Resilience Map",
    description="Food access, heat vulnerability and waste site dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
