"""Mobile alert session controller.

Owns the device's view of the active alert: raising it, pushing live location
every few seconds, polling the server for status, queueing pushes while
offline and patching the local alert history when the alert ends. Everything
runs on one event loop; the location timer and the status poll are
independent and may drift relative to each other.
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from alertline.client.api import AlertApiClient, ApiError, NetworkError
from alertline.client.models import ActiveAlert, DevicePosition, LocalHistoryEntry, PendingLocationUpdate
from alertline.client.scheduler import PeriodicTask
from alertline.client.storage import (
    ACTIVE_ALERT_KEY,
    ALERT_HISTORY_KEY,
    CONTACTS_KEY,
    PENDING_LOCATIONS_KEY,
    LocalStateStore,
)
from alertline.core import alert_states
from alertline.core.config import settings

logger = logging.getLogger(__name__)

PositionProvider = Callable[[], Awaitable[DevicePosition | None]]
Notifier = Callable[[str, str], None]

LIVE_ADDRESS = "Live location update"
DEVICE_ADDRESS = "Location from mobile device"
BACKGROUND_STATES = ("inactive", "background")


def _log_notification(title: str, message: str) -> None:
    logger.info("Notification: %s - %s", title, message)


def _format_position(position: DevicePosition | None) -> str:
    if position is None:
        return "Unknown"
    return f"{position.latitude:.4f}, {position.longitude:.4f}"


class AlertSessionController:
    """Client-side alert lifecycle: one active alert at a time."""

    def __init__(
        self,
        api: AlertApiClient,
        store: LocalStateStore,
        get_position: PositionProvider,
        notify: Notifier | None = None,
        user_name: str = "Anonymous",
        user_id: str | None = None,
        gps_interval: float | None = None,
        poll_interval: float | None = None,
    ) -> None:
        self._api = api
        self._store = store
        self._get_position = get_position
        self._notify = notify or _log_notification
        self.user_name = user_name
        self.user_id = user_id
        self.gps_interval = gps_interval if gps_interval is not None else settings.gps_update_interval_seconds
        self.poll_interval = poll_interval if poll_interval is not None else settings.status_poll_interval_seconds

        self.active_alert: ActiveAlert | None = None
        self.is_online = True
        self.last_position: DevicePosition | None = None
        self.pending: list[PendingLocationUpdate] = []
        self._app_state = "active"
        self._location_task: PeriodicTask | None = None
        self._poll_task: PeriodicTask | None = None

    # ---------- persisted state ----------

    async def restore(self) -> None:
        """Reload the tracking session saved before an app restart."""
        raw = self._store.get(ACTIVE_ALERT_KEY)
        if raw:
            self.active_alert = ActiveAlert.from_dict(raw)
        self.pending = [PendingLocationUpdate.from_dict(p) for p in self._store.get(PENDING_LOCATIONS_KEY, [])]
        if self.active_alert and self.active_alert.status != alert_states.RESOLVED:
            self._start_tracking()

    @property
    def history(self) -> list[LocalHistoryEntry]:
        return [LocalHistoryEntry.from_dict(h) for h in self._store.get(ALERT_HISTORY_KEY, [])]

    def _prepend_history(self, entry: LocalHistoryEntry) -> None:
        self._store.set(ALERT_HISTORY_KEY, [entry.to_dict()] + self._store.get(ALERT_HISTORY_KEY, []))

    def _record_unsent(self, alert_type: str, position: DevicePosition | None) -> None:
        # Local placeholder with no server id; it is never confirmed later
        self._prepend_history(
            LocalHistoryEntry(
                id=str(int(time.time() * 1000)),
                type=alert_type,
                location=_format_position(position),
                status="sent",
            )
        )

    def _set_history_status(self, alert_id: str, status: str) -> None:
        entries = self._store.get(ALERT_HISTORY_KEY, [])
        for entry in entries:
            if entry.get("id") == alert_id:
                entry["status"] = status
        self._store.set(ALERT_HISTORY_KEY, entries)

    def _set_active(self, alert: ActiveAlert | None) -> None:
        self.active_alert = alert
        if alert is None:
            self._store.remove(ACTIVE_ALERT_KEY)
        else:
            self._store.set(ACTIVE_ALERT_KEY, alert.to_dict())

    def _enqueue(self, alert_id: str, position: DevicePosition) -> None:
        self.pending.append(
            PendingLocationUpdate(
                alert_id=alert_id,
                latitude=position.latitude,
                longitude=position.longitude,
                accuracy=position.accuracy,
            )
        )
        self._store.set(PENDING_LOCATIONS_KEY, [p.to_dict() for p in self.pending])

    # ---------- timers ----------

    def _start_tracking(self) -> None:
        self._stop_tracking()
        self._location_task = PeriodicTask(self.gps_interval, self.location_tick, name="location")
        self._poll_task = PeriodicTask(self.poll_interval, self.poll_status, name="status-poll")
        self._location_task.start()
        self._poll_task.start()

    def _stop_tracking(self) -> None:
        for task in (self._location_task, self._poll_task):
            if task is not None:
                task.cancel()
        self._location_task = None
        self._poll_task = None

    @property
    def tracking(self) -> bool:
        return self._location_task is not None and self._location_task.running

    # ---------- location ----------

    async def refresh_position(self) -> DevicePosition | None:
        try:
            position = await self._get_position()
        except Exception as exc:  # noqa: BLE001 - provider failures just mean no fix this time
            logger.error("Unable to get location: %s", exc)
            return None
        if position is not None:
            self.last_position = position
        return position

    async def location_tick(self) -> None:
        """One location cycle: read the device position and push it."""
        alert = self.active_alert
        if alert is None:
            return
        position = await self.refresh_position()
        if position is None or self.active_alert is not alert:
            return
        await self._send_location(alert, position)

    async def _send_location(self, alert: ActiveAlert, position: DevicePosition) -> None:
        if not self.is_online:
            self._enqueue(alert.id, position)
            return
        try:
            await self._api.push_location(
                alert.id,
                position.latitude,
                position.longitude,
                position.accuracy,
                address=LIVE_ADDRESS,
            )
        except NetworkError as exc:
            logger.warning("Error sending location update, queued for retry: %s", exc)
            self._enqueue(alert.id, position)
            return
        except ApiError as exc:
            logger.error("Location update rejected: %s", exc)
            return
        if self.pending:
            await self.flush_pending()

    async def flush_pending(self) -> int:
        """Drain the queue in order. Entries that fail during the drain are dropped."""
        if not self.pending:
            return 0
        batch = self.pending
        self.pending = []
        self._store.remove(PENDING_LOCATIONS_KEY)

        delivered = 0
        for update in batch:
            try:
                await self._api.push_location(update.alert_id, update.latitude, update.longitude, update.accuracy)
                delivered += 1
            except (NetworkError, ApiError) as exc:
                logger.error("Error sending pending update for alert=%s: %s", update.alert_id, exc)
        logger.info("Flushed pending location updates: delivered=%s dropped=%s", delivered, len(batch) - delivered)
        return delivered

    async def set_online(self, online: bool) -> None:
        """Connectivity signal from the platform. Coming back online flushes the queue."""
        was_online = self.is_online
        self.is_online = online
        if online and not was_online:
            await self.flush_pending()

    async def handle_app_state(self, next_state: str) -> None:
        """Foreground resume forces an immediate location refresh."""
        previous = self._app_state
        self._app_state = next_state
        if previous in BACKGROUND_STATES and next_state == "active" and self.active_alert:
            await self.location_tick()

    # ---------- lifecycle ----------

    async def send_alert(self, alert_type: str, description: str | None = None) -> ActiveAlert | None:
        """Raise an alert. On failure a local-only history entry is kept and ``None`` returned."""
        position = await self.refresh_position() or self.last_position
        contacts = self._store.get(CONTACTS_KEY, [])

        payload: dict = {
            "type": alert_type,
            "description": description or f"{alert_type} emergency reported via mobile app",
            "user_name": self.user_name,
            "user_phone": contacts[0].get("phone") if contacts else "Not provided",
            "emergency_contacts": [
                {
                    "name": c.get("name"),
                    "phone": c.get("phone"),
                    "relationship": c.get("relationship") or "Contact",
                }
                for c in contacts
            ],
        }
        if self.user_id:
            payload["user_id"] = self.user_id
        if position is None:
            logger.warning("Send alert without a location fix: type=%s", alert_type)
            self._record_unsent(alert_type, position)
            self._notify("Location Unavailable", "Turn on location services and try again.")
            return None
        payload["location"] = {
            "latitude": position.latitude,
            "longitude": position.longitude,
            "accuracy": position.accuracy,
            "address": DEVICE_ADDRESS,
        }

        try:
            created = await self._api.create_alert(payload)
        except (NetworkError, ApiError) as exc:
            logger.error("Send alert error: %s", exc)
            self.is_online = False
            self._record_unsent(alert_type, position)
            self._notify(
                "Connection Error",
                "Could not reach the server. Please check:\n\n"
                "1. The alert server is running\n"
                "2. This device has network access\n"
                f"3. The API URL is correct ({self._api.base_url})\n\n"
                f"Error: {exc}",
            )
            return None

        active = ActiveAlert(id=created["id"], type=alert_type)
        self._set_active(active)
        self._prepend_history(
            LocalHistoryEntry(id=active.id, type=alert_type, location=_format_position(position), status="sent")
        )
        self.is_online = True
        self._notify(
            "Alert Sent",
            f"Your {alert_type} alert has been sent to emergency responders. GPS tracking is now active.",
        )
        self._start_tracking()
        return active

    async def poll_status(self) -> None:
        """Compare server status with the local mirror and react to changes."""
        alert = self.active_alert
        if alert is None or alert.status == alert_states.RESOLVED:
            return
        try:
            server = await self._api.get_alert(alert.id)
        except (NetworkError, ApiError) as exc:
            logger.error("Error checking alert status: %s", exc)
            return
        if self.active_alert is not alert:
            return

        server_status = server.get("status")
        if server_status == alert.status:
            return

        if alert_states.is_terminal(server_status):
            if server_status == alert_states.RESOLVED:
                self._notify("Emergency Resolved", "Your emergency has been resolved by the responder. Stay safe!")
            else:
                self._notify("Alert Cancelled", "This alert has been cancelled.")
            self._set_history_status(alert.id, server_status)
            self._stop_tracking()
            self._set_active(None)
        elif server_status == alert_states.RESPONDING:
            alert.status = alert_states.RESPONDING
            alert.responder_name = server.get("responder_name") or "Responder"
            self._set_active(alert)
            self._set_history_status(alert.id, "received")
            self._notify("Help Is On The Way", f"{alert.responder_name} is responding to your alert.")

    async def cancel_alert(self) -> bool:
        """Cancel the active alert. Local state is cleared even if the server call fails."""
        alert = self.active_alert
        if alert is None:
            return False
        try:
            await self._api.set_status(alert.id, alert_states.CANCELLED)
        except (NetworkError, ApiError) as exc:
            logger.error("Error cancelling alert: %s", exc)
        self._set_active(None)
        self._stop_tracking()
        return True

    async def close(self) -> None:
        """Stop the timers and close the API client this controller was given."""
        self._stop_tracking()
        await self._api.aclose()
