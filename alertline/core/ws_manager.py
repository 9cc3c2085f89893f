"""WebSocket connection manager for real-time events."""

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks active WebSocket connections and the rooms each one joined."""

    def __init__(self) -> None:
        # websocket -> set of room names
        self._connections: dict[WebSocket, set[str]] = {}

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections[websocket] = set()
        logger.info("WS connected (total=%s)", self.total_connections)

    def join(self, websocket: WebSocket, room: str) -> None:
        rooms = self._connections.get(websocket)
        if rooms is None:
            return
        rooms.add(room)
        logger.info("WS joined room=%s", room)

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.pop(websocket, None)
        logger.info("WS disconnected (total=%s)", self.total_connections)

    async def broadcast(self, event: str, data: Any) -> None:
        """Send event to every connection."""
        await self._send(list(self._connections), event, data)

    async def send_to_room(self, room: str, event: str, data: Any) -> None:
        """Send event to connections that joined ``room``."""
        targets = [ws for ws, rooms in self._connections.items() if room in rooms]
        await self._send(targets, event, data)

    async def _send(self, targets: list[WebSocket], event: str, data: Any) -> None:
        payload = json.dumps({"event": event, "data": data}, default=str)
        dead: list[WebSocket] = []
        for ws in targets:
            try:
                await ws.send_text(payload)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self._connections.pop(ws, None)

    @property
    def total_connections(self) -> int:
        return len(self._connections)


# Singleton instance used across the app
ws_manager = ConnectionManager()
