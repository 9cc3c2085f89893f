"""WebSocket endpoint for live alert events."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from alertline.core.relay import RESPONDER_LOCATION_UPDATE, relay
from alertline.core.ws_manager import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Server pushes events: newAlert, alertUpdated, locationUpdate, userOffline.
    Client messages: "ping", {"event": "join", "data": {"type", "id"}},
    {"event": "responderLocation", "data": {...}}.
    """
    await ws_manager.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            # Echo pong for heartbeat
            if raw == "ping":
                await websocket.send_text('{"event":"pong"}')
                continue
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("WS ignored non-JSON message")
                continue
            if not isinstance(message, dict):
                continue

            event = message.get("event")
            data = message.get("data") or {}
            if not isinstance(data, dict):
                logger.debug("WS ignored event=%s with non-object data", event)
                continue
            if event == "join":
                rooms = [str(data[key]) for key in ("type", "id") if data.get(key)]
                for room in rooms:
                    ws_manager.join(websocket, room)
                await websocket.send_text(json.dumps({"event": "joined", "data": {"rooms": rooms}}))
            elif event == "responderLocation":
                await relay.emit(RESPONDER_LOCATION_UPDATE, data, channel="user")
    except WebSocketDisconnect:
        pass
    finally:
        ws_manager.disconnect(websocket)
