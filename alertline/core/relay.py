"""Live update relay.

Services only see the :class:`EventPublisher` protocol. The relay fans each
published event out to WebSocket clients and in-process subscriptions on the
application's event loop. Delivery is best-effort: no acknowledgement, replay
or ordering guarantee, and an event published with no loop bound is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from fastapi.encoders import jsonable_encoder

from alertline.core.ws_manager import ConnectionManager, ws_manager

logger = logging.getLogger(__name__)

BROADCAST = "*"

# Event names pushed to clients
NEW_ALERT = "newAlert"
ALERT_UPDATED = "alertUpdated"
LOCATION_UPDATE = "locationUpdate"
USER_OFFLINE = "userOffline"
RESPONDER_LOCATION_UPDATE = "responderLocationUpdate"


class EventPublisher(Protocol):
    def publish(self, event: str, payload: Any, channel: str = BROADCAST) -> None: ...


@dataclass
class RelayEvent:
    event: str
    data: Any
    channel: str = BROADCAST


class Subscription:
    """In-process listener. Iterate with ``async for``; call ``close()`` when done."""

    def __init__(self, relay: LiveUpdateRelay, channel: str) -> None:
        self.channel = channel
        self._relay = relay
        self._queue: asyncio.Queue[RelayEvent | None] = asyncio.Queue()
        self.closed = False

    def accepts(self, channel: str) -> bool:
        return channel == BROADCAST or channel == self.channel

    def deliver(self, item: RelayEvent) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> RelayEvent:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        """Stop the subscription. Queued events are still drained, then iteration ends."""
        if not self.closed:
            self.closed = True
            self._relay._discard(self)
            # Wakes a reader blocked on an empty queue
            self._queue.put_nowait(None)


class LiveUpdateRelay:
    """Publishes lifecycle and location events to every interested listener."""

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager
        self._loop: asyncio.AbstractEventLoop | None = None
        self._subscriptions: set[Subscription] = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        """Set the loop deliveries run on (the server's loop)."""
        self._loop = loop

    def subscribe(self, channel: str = BROADCAST) -> Subscription:
        sub = Subscription(self, channel)
        self._subscriptions.add(sub)
        return sub

    def _discard(self, sub: Subscription) -> None:
        self._subscriptions.discard(sub)

    def publish(self, event: str, payload: Any, channel: str = BROADCAST) -> None:
        """Schedule delivery from any thread. Never raises on delivery problems."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Relay has no running loop, dropping event=%s", event)
            return
        item = RelayEvent(event=event, data=jsonable_encoder(payload), channel=channel)
        try:
            asyncio.run_coroutine_threadsafe(self._dispatch(item), loop)
        except RuntimeError:
            logger.debug("Relay loop unavailable, dropping event=%s", event)

    async def emit(self, event: str, payload: Any, channel: str = BROADCAST) -> None:
        """Deliver immediately from code already running on the loop."""
        await self._dispatch(RelayEvent(event=event, data=jsonable_encoder(payload), channel=channel))

    async def _dispatch(self, item: RelayEvent) -> None:
        for sub in list(self._subscriptions):
            if sub.accepts(item.channel):
                sub.deliver(item)
        if item.channel == BROADCAST:
            await self._manager.broadcast(item.event, item.data)
        else:
            await self._manager.send_to_room(item.channel, item.event, item.data)


relay = LiveUpdateRelay(ws_manager)


def get_publisher() -> EventPublisher:
    """Dependency returning the application relay."""
    return relay
