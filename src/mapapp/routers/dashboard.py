"""Dashboard API — snapshot, chart, indicators, layers and visibility toggles.

The front end is the external collaborator: it renders what these
endpoints return and posts visibility toggles back. The /ws stream pushes
the controller's snapshot, visibility and layer_ready events as they
happen.
"""

from __future__ import annotations

import asyncio
import json
import queue

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import BaseModel

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

# Seconds between event queue polls on an idle stream
EVENT_POLL_INTERVAL = 0.05


class VisibilityRequest(BaseModel):
    """Show or hide a dataset or overlay."""
    visible: bool


class VisibilityResponse(BaseModel):
    dataset: str
    visible: bool
    markers: int


def _get_controller(request: Request):
    """Retrieve the DashboardController from app state."""
    controller = getattr(request.app.state, "dashboard", None)
    if controller is None:
        raise HTTPException(503, "Dashboard not available")
    return controller


@router.get("/snapshot")
async def get_snapshot(request: Request):
    """Latest aggregate snapshot."""
    return _get_controller(request).snapshot.to_dict()


@router.get("/chart")
async def get_chart(request: Request):
    """Chart series and layout."""
    return _get_controller(request).chart.to_dict()


@router.get("/indicators")
async def get_indicators(request: Request):
    """Marker counts, opacity hints and the heat legend."""
    return _get_controller(request).indicators.to_dict()


@router.get("/layers")
async def list_layers(request: Request):
    """Layer groups currently on the map plus the viewport."""
    controller = _get_controller(request)
    view = controller.map
    return {
        "center": list(view.center),
        "zoom": view.zoom,
        "layers": [
            {
                "id": layer.layer_id,
                "name": layer.name,
                "format": layer.source_format,
                "markers": layer.marker_count,
                "shapes": len(layer.features),
                "z_index": layer.z_index,
            }
            for layer in view.list_layers()
        ],
    }


@router.get("/layers/{dataset_id}")
async def export_layer(dataset_id: str, request: Request):
    """GeoJSON for a layer group that is on the map."""
    controller = _get_controller(request)
    try:
        return json.loads(controller.map.export_layer(dataset_id, "geojson"))
    except KeyError:
        raise HTTPException(404, f"Layer '{dataset_id}' is not on the map")


@router.get("/visibility")
async def get_visibility(request: Request):
    return _get_controller(request).store.as_dict()


@router.post("/visibility/{dataset_id}", response_model=VisibilityResponse)
async def set_visibility(dataset_id: str, body: VisibilityRequest, request: Request):
    """Toggle a dataset; lazy overlays are loaded before responding."""
    controller = _get_controller(request)
    try:
        visible = await controller.set_visibility(dataset_id, body.visible)
    except KeyError:
        raise HTTPException(404, f"Unknown dataset: {dataset_id}")
    return VisibilityResponse(
        dataset=dataset_id,
        visible=visible,
        markers=controller.state.marker_count(dataset_id),
    )


@router.post("/reload")
async def reload_datasets(request: Request):
    """Re-fetch the three datasets."""
    controller = _get_controller(request)
    outcome = await controller.load_all()
    return {"loaded": outcome, "snapshot": controller.snapshot.to_dict()}


async def _forward_events(websocket: WebSocket, events: queue.Queue) -> None:
    """Relay EventBus messages to one client until cancelled."""
    while True:
        try:
            msg = events.get_nowait()
        except queue.Empty:
            await asyncio.sleep(EVENT_POLL_INTERVAL)
            continue
        await websocket.send_json(msg)


async def _handle_client_message(websocket: WebSocket, message: dict) -> None:
    msg_type = message.get("type")
    if msg_type == "ping":
        await websocket.send_json({"type": "pong"})
    else:
        await websocket.send_json(
            {"type": "error", "message": f"Unknown message type: {msg_type}"}
        )


@router.websocket("/ws")
async def dashboard_events(websocket: WebSocket):
    """Live dashboard events: snapshot, visibility, layer_ready."""
    controller = getattr(websocket.app.state, "dashboard", None)
    if controller is None:
        await websocket.close(code=1013)
        return

    await websocket.accept()
    events = controller.event_bus.subscribe()
    logger.info(f"Dashboard stream connected ({controller.event_bus.subscriber_count} subscribers)")
    await websocket.send_json({
        "type": "connected",
        "data": {
            "snapshot": controller.snapshot.to_dict(),
            "visibility": controller.store.as_dict(),
        },
    })

    sender = asyncio.create_task(_forward_events(websocket, events))
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "message": "Expected a JSON object"})
                continue
            await _handle_client_message(websocket, message)
    except WebSocketDisconnect:
        logger.info("Dashboard stream disconnected")
    finally:
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        controller.event_bus.unsubscribe(events)
