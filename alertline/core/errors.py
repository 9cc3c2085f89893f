"""Service-level errors, translated to HTTP status codes by the API layer."""

from __future__ import annotations

from typing import Any


class AlertError(Exception):
    """Base class for alert service failures."""


class ValidationError(AlertError):
    """A required field is missing or a value is not accepted (400)."""


class NotFoundError(AlertError):
    """The referenced alert or history entry does not exist (404)."""


class TransitionError(AlertError):
    """Requested status change is not an edge of the alert state machine (409)."""


class AlreadyArchivedError(AlertError):
    """An archive entry already exists for this alert (409)."""

    def __init__(self, message: str, history: Any = None) -> None:
        super().__init__(message)
        self.history = history


class StorageError(AlertError):
    """Persistence failed, after the retry when one applies (500)."""
