"""alertline FastAPI application."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from alertline.api import alert_history, alerts, health, ws
from alertline.core.config import settings
from alertline.core.relay import relay

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Route handlers publish from worker threads onto this loop
    relay.bind_loop(asyncio.get_running_loop())
    yield
    relay.bind_loop(None)


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(alerts.router, prefix=settings.api_prefix)
app.include_router(alert_history.router, prefix=settings.api_prefix)
app.include_router(ws.router)
