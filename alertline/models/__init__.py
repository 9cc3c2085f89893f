"""SQLAlchemy models."""

from __future__ import annotations

from alertline.models.alert import Alert
from alertline.models.alert_history import AlertHistory

__all__ = [
    "Alert",
    "AlertHistory",
]
