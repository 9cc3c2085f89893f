"""Background reconciliation of the device's local alert history."""

from __future__ import annotations

import logging

from alertline.client.api import AlertApiClient, ApiError, NetworkError
from alertline.client.scheduler import PeriodicTask
from alertline.client.storage import ALERT_HISTORY_KEY, LocalStateStore
from alertline.core import alert_states
from alertline.core.config import settings

logger = logging.getLogger(__name__)


class HistoryReconciler:
    """Every few seconds, ask the server about local entries that have not ended yet.

    Entries whose server status is terminal get that status patched in. Local-only
    entries (no server counterpart) fail lookup and stay as they are.
    """

    def __init__(self, api: AlertApiClient, store: LocalStateStore, interval: float | None = None) -> None:
        self._api = api
        self._store = store
        self.interval = interval if interval is not None else settings.history_sync_interval_seconds
        self._task: PeriodicTask | None = None

    async def reconcile_once(self) -> int:
        """Run one pass and return how many entries changed."""
        open_ids = [
            entry["id"]
            for entry in self._store.get(ALERT_HISTORY_KEY, [])
            if entry.get("id") and not alert_states.is_terminal(entry.get("status"))
        ]
        finished: dict[str, str] = {}
        for alert_id in open_ids:
            try:
                server = await self._api.get_alert(alert_id)
            except (NetworkError, ApiError) as exc:
                logger.debug("History check skipped: alert=%s error=%s", alert_id, exc)
                continue
            server_status = server.get("status")
            if alert_states.is_terminal(server_status):
                finished[alert_id] = server_status

        if not finished:
            return 0

        # Re-read: the session may have added or patched entries while we awaited
        entries = self._store.get(ALERT_HISTORY_KEY, [])
        changed = 0
        for entry in entries:
            status = finished.get(entry.get("id"))
            if status and entry.get("status") != status:
                entry["status"] = status
                changed += 1

        if changed:
            self._store.set(ALERT_HISTORY_KEY, entries)
            logger.info("Local alert history reconciled: changed=%s", changed)
        return changed

    def start(self) -> None:
        if self._task is None:
            self._task = PeriodicTask(self.interval, self.reconcile_once, name="history-sync")
        self._task.start()

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
