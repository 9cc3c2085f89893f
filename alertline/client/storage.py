"""On-device key/value persistence.

Plain JSON blobs under fixed keys, no schema versioning.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from alertline.core.config import settings

logger = logging.getLogger(__name__)

ACTIVE_ALERT_KEY = "activeAlert"
ALERT_HISTORY_KEY = "alertHistory"
PENDING_LOCATIONS_KEY = "pendingLocationUpdates"
CONTACTS_KEY = "contacts"


class LocalStateStore:
    """JSON file holding the client's persisted state. ``path=None`` keeps it in memory."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else None
        self._data: dict[str, Any] = self._load()

    @classmethod
    def from_settings(cls) -> LocalStateStore:
        """Store at the configured on-device path."""
        return cls(settings.client_state_path)

    def _load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read local state %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data, default=str), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()
