"""HTTP client for the alerts API, used by the mobile session controller."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from alertline.core.config import settings

logger = logging.getLogger(__name__)


class NetworkError(Exception):
    """The request never got a response (offline, DNS, refused, timeout)."""


class ApiError(Exception):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class AlertApiClient:
    """Thin async wrapper over the alert endpoints. Returns the ``alert`` object of each response."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.client_api_url).rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, transport=transport)

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc
        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise ApiError(response.status_code, str(detail))
        return response.json()

    async def create_alert(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", "/alerts", json=payload)
        return data["alert"]

    async def get_alert(self, alert_id: str) -> dict[str, Any]:
        data = await self._request("GET", f"/alerts/{alert_id}")
        return data["alert"]

    async def push_location(
        self,
        alert_id: str,
        latitude: float,
        longitude: float,
        accuracy: float | None = None,
        address: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"latitude": latitude, "longitude": longitude, "accuracy": accuracy}
        if address:
            body["address"] = address
        data = await self._request("PATCH", f"/alerts/{alert_id}/location", json=body)
        return data["alert"]

    async def set_status(self, alert_id: str, status: str, **responder: str) -> dict[str, Any]:
        data = await self._request("PATCH", f"/alerts/{alert_id}/status", json={"status": status, **responder})
        return data["alert"]

    async def mark_offline(self, alert_id: str) -> dict[str, Any]:
        data = await self._request("PATCH", f"/alerts/{alert_id}/offline")
        return data["alert"]

    async def aclose(self) -> None:
        await self._client.aclose()
