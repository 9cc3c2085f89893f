"""Client-side records mirrored from, or queued for, the server."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DevicePosition:
    """A fix from the device location provider."""

    latitude: float
    longitude: float
    accuracy: float | None = None


@dataclass
class ActiveAlert:
    """Local mirror of the alert currently being tracked."""

    id: str
    type: str
    start_time: str = field(default_factory=_now_iso)
    status: str = "pending"  # pending | responding | resolved | cancelled
    responder_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActiveAlert:
        return cls(
            id=data["id"],
            type=data["type"],
            start_time=data.get("start_time") or _now_iso(),
            status=data.get("status", "pending"),
            responder_name=data.get("responder_name"),
        )


@dataclass
class LocalHistoryEntry:
    """Row of the on-device alert history."""

    id: str
    type: str
    location: str
    status: str = "sent"  # sent | received | resolved | cancelled
    timestamp: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocalHistoryEntry:
        return cls(
            id=str(data["id"]),
            type=data.get("type", "other"),
            location=data.get("location", "Unknown"),
            status=data.get("status", "sent"),
            timestamp=data.get("timestamp") or _now_iso(),
        )


@dataclass
class PendingLocationUpdate:
    """Location sample waiting to be delivered after a failed push."""

    alert_id: str
    latitude: float
    longitude: float
    accuracy: float | None = None
    timestamp: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingLocationUpdate:
        return cls(
            alert_id=data["alert_id"],
            latitude=data["latitude"],
            longitude=data["longitude"],
            accuracy=data.get("accuracy"),
            timestamp=data.get("timestamp") or _now_iso(),
        )
