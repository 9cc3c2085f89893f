"""Cancellable periodic tasks on the running event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run ``callback`` every ``interval`` seconds until cancelled.

    Each tick is spawned as its own task, so a slow callback never delays the
    next tick. ``cancel()`` stops future ticks only; ticks already running are
    left to finish. It is idempotent and safe before ``start()``.
    """

    def __init__(self, interval: float, callback: Callable[[], Awaitable[None]], name: str = "periodic") -> None:
        self.interval = interval
        self.name = name
        self._callback = callback
        self._runner: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def start(self) -> None:
        if self.running:
            return
        self._runner = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            tick = asyncio.get_running_loop().create_task(self._tick())
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)

    async def _tick(self) -> None:
        try:
            await self._callback()
        except Exception:  # noqa: BLE001 - one bad tick must not kill the schedule
            logger.exception("Periodic task %s tick failed", self.name)

    def cancel(self) -> None:
        if self._runner is not None:
            self._runner.cancel()
            self._runner = None
