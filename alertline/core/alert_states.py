"""Alert status state machine.

An alert starts ``pending``, may be claimed by a responder (``responding``) and
ends either ``resolved`` or ``cancelled``. Nothing leaves a terminal state and
self-transitions are not edges.
"""

from __future__ import annotations

from alertline.core.errors import TransitionError, ValidationError

PENDING = "pending"
RESPONDING = "responding"
RESOLVED = "resolved"
CANCELLED = "cancelled"

STATUSES = (PENDING, RESPONDING, RESOLVED, CANCELLED)
TERMINAL_STATUSES = frozenset({RESOLVED, CANCELLED})

# Valid state transitions: from_state -> [to_states]
VALID_TRANSITIONS: dict[str, list[str]] = {
    PENDING: [RESPONDING, RESOLVED, CANCELLED],
    RESPONDING: [RESOLVED, CANCELLED],
    RESOLVED: [],  # Terminal
    CANCELLED: [],  # Terminal
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: str, target: str) -> bool:
    """Return True if ``current -> target`` is an edge of the graph."""
    return target in VALID_TRANSITIONS.get(current, [])


def ensure_transition(current: str, target: str) -> None:
    """Raise unless ``current -> target`` is allowed."""
    if target not in VALID_TRANSITIONS:
        raise ValidationError(f"Unknown status '{target}'")
    if not can_transition(current, target):
        if is_terminal(current):
            raise TransitionError(f"Alert is already {current}")
        raise TransitionError(f"Cannot change status from {current} to {target}")
