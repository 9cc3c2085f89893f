"""Alert policy constants."""

from __future__ import annotations

CATEGORIES = (
    "medical",
    "fire",
    "police",
    "rescue",
    "crime",
    "accident",
    "natural",
    "SOS",
    "other",
)

# Priority is fixed at creation from the category
PRIORITY_BY_CATEGORY = {
    "SOS": "critical",
    "medical": "critical",
    "fire": "high",
    "crime": "high",
    "accident": "medium",
    "rescue": "medium",
}
DEFAULT_PRIORITY = "low"

# Default page size for responder dashboards
DEFAULT_LIST_LIMIT = 50

DEFAULT_ADDRESS = "Location not specified"
UPDATING_ADDRESS = "Location updating..."
DEFAULT_USER_NAME = "Anonymous"
DEFAULT_USER_PHONE = "Not provided"

# Storage errors worth one retry on location pushes
TRANSIENT_ERROR_NAMES = frozenset({
    "DisconnectionError",
    "ConnectionResetError",
    "BrokenPipeError",
})
TRANSIENT_ERROR_MARKERS = (
    "ECONNRESET",
    "connection reset",
    "server closed the connection",
)


def derive_priority(category: str) -> str:
    """Map an alert category to its priority."""
    return PRIORITY_BY_CATEGORY.get(category, DEFAULT_PRIORITY)
