"""Alert lifecycle service."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from alertline.core import alert_states
from alertline.core.alert_policies import (
    CATEGORIES,
    DEFAULT_ADDRESS,
    DEFAULT_LIST_LIMIT,
    DEFAULT_USER_NAME,
    DEFAULT_USER_PHONE,
    derive_priority,
)
from alertline.core.errors import NotFoundError, ValidationError
from alertline.core.relay import ALERT_UPDATED, NEW_ALERT, EventPublisher
from alertline.models.alert import Alert
from alertline.schemas.alert import AlertCreate, AlertResponse, AlertStatusUpdate
from alertline.services.history_service import archive_if_terminal

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def alert_payload(alert: Alert) -> dict:
    """Full record as broadcast to listeners."""
    return AlertResponse.model_validate(alert).model_dump(mode="json")


def create_alert(db: Session, data: AlertCreate, publisher: EventPublisher) -> Alert:
    """Create a pending alert with derived priority and broadcast ``newAlert``."""
    if not data.type or data.location is None:
        raise ValidationError("Type and location are required")
    if data.type not in CATEGORIES:
        raise ValidationError(f"Unknown alert type '{data.type}'")

    now = datetime.now(timezone.utc)
    loc = data.location
    alert = Alert(
        type=data.type,
        description=data.description or f"{data.type} emergency reported",
        priority=derive_priority(data.type),
        status=alert_states.PENDING,
        location={
            "latitude": loc.latitude,
            "longitude": loc.longitude,
            "accuracy": loc.accuracy,
            "address": loc.address or DEFAULT_ADDRESS,
        },
        location_history=[
            {
                "latitude": loc.latitude,
                "longitude": loc.longitude,
                "accuracy": loc.accuracy,
                "timestamp": now.isoformat(),
            }
        ],
        last_location_update=now,
        is_online=True,
        user_id=data.user_id or uuid.uuid4().hex,
        user_name=data.user_name or DEFAULT_USER_NAME,
        user_phone=data.user_phone or DEFAULT_USER_PHONE,
        emergency_contacts=[c.model_dump() for c in data.emergency_contacts],
        created_at=now,
        updated_at=now,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    logger.info("Alert created: id=%s type=%s priority=%s", alert.id, alert.type, alert.priority)

    publisher.publish(NEW_ALERT, alert_payload(alert))
    return alert


def get_alert(db: Session, alert_id: str) -> Alert:
    alert = db.get(Alert, alert_id)
    if not alert:
        raise NotFoundError("Alert not found")
    return alert


def list_alerts(
    db: Session,
    status: str | None = None,
    alert_type: str | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[Alert]:
    """List alerts newest first, optionally filtered by status and type."""
    stmt = select(Alert)
    if status:
        stmt = stmt.where(Alert.status == status)
    if alert_type:
        stmt = stmt.where(Alert.type == alert_type)
    stmt = stmt.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def list_user_alerts(db: Session, user_id: str) -> list[Alert]:
    """All alerts raised by one reporter, newest first."""
    stmt = select(Alert).where(Alert.user_id == user_id).order_by(Alert.created_at.desc(), Alert.id.desc())
    return list(db.execute(stmt).scalars().all())


def set_status(db: Session, alert_id: str, data: AlertStatusUpdate, publisher: EventPublisher) -> Alert:
    """Move an alert along the state machine.

    Claiming (``responding``) needs a responder id. Entering a terminal state
    archives the alert best-effort; archival problems never fail this call.
    """
    if not data.status:
        raise ValidationError("Status is required")

    alert = get_alert(db, alert_id)
    alert_states.ensure_transition(alert.status, data.status)

    now = datetime.now(timezone.utc)
    if data.status == alert_states.RESPONDING:
        if not data.responder_id:
            raise ValidationError("Responder id is required to respond to an alert")
        alert.responder_id = data.responder_id
        alert.responder_name = data.responder_name
        alert.response_time = now
    elif data.status == alert_states.RESOLVED:
        alert.resolved_time = now

    previous = alert.status
    alert.status = data.status
    alert.updated_at = now
    db.commit()
    db.refresh(alert)
    logger.info("Alert status changed: id=%s %s -> %s", alert.id, previous, alert.status)

    if alert_states.is_terminal(alert.status):
        archive_if_terminal(db, alert)

    publisher.publish(ALERT_UPDATED, alert_payload(alert))
    return alert


def alert_stats(db: Session) -> dict:
    """Counts by status and type, plus alerts raised in the last 24 hours."""

    def _count(*criteria) -> int:
        return db.execute(select(func.count(Alert.id)).where(*criteria)).scalar_one()

    by_type_rows = db.execute(select(Alert.type, func.count(Alert.id)).group_by(Alert.type)).all()
    since = datetime.now(timezone.utc) - timedelta(hours=24)
    return {
        "total": db.execute(select(func.count(Alert.id))).scalar_one(),
        "pending": _count(Alert.status == alert_states.PENDING),
        "responding": _count(Alert.status == alert_states.RESPONDING),
        "resolved": _count(Alert.status == alert_states.RESOLVED),
        "cancelled": _count(Alert.status == alert_states.CANCELLED),
        "last_24_hours": _count(Alert.created_at >= since),
        "by_type": {alert_type: count for alert_type, count in by_type_rows},
    }


def idle_minutes(last_update: datetime, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    return max(0, int((now - _as_utc(last_update)).total_seconds() // 60))


def format_idle_time(minutes: int) -> str:
    """Dashboard label for time since the last location update."""
    if minutes >= 60:
        return f"{minutes // 60}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m"
    return "Just now"


def relative_time(created: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    diff = (now - _as_utc(created)).total_seconds()
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{days} day{'s' if days > 1 else ''} ago"
