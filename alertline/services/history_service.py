"""Alert history (archive) service."""

from __future__ import annotations

import logging
import math

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from alertline.core import alert_states
from alertline.core.errors import AlreadyArchivedError, NotFoundError, ValidationError
from alertline.models.alert import Alert
from alertline.models.alert_history import AlertHistory

logger = logging.getLogger(__name__)


def get_history_for_alert(db: Session, alert_id: str) -> AlertHistory | None:
    return db.execute(
        select(AlertHistory).where(AlertHistory.original_alert_id == alert_id)
    ).scalar_one_or_none()


def archive_alert(db: Session, alert: Alert) -> AlertHistory:
    """Copy a resolved or cancelled alert into history. Refuses duplicates."""
    if not alert_states.is_terminal(alert.status):
        raise ValidationError("Only resolved or cancelled alerts can be archived")

    existing = get_history_for_alert(db, alert.id)
    if existing:
        raise AlreadyArchivedError("Alert already archived", history=existing)

    entry = AlertHistory(
        original_alert_id=alert.id,
        type=alert.type,
        description=alert.description,
        location=dict(alert.location),
        user_id=alert.user_id,
        user_name=alert.user_name,
        user_phone=alert.user_phone,
        emergency_contacts=list(alert.emergency_contacts or []),
        priority=alert.priority,
        final_status=alert.status,
        responder_id=alert.responder_id,
        responder_name=alert.responder_name,
        response_time=alert.response_time,
        resolved_time=alert.resolved_time,
        alert_created_at=alert.created_at,
        alert_updated_at=alert.updated_at,
        notes=alert.notes,
    )
    db.add(entry)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent archive of the same alert
        db.rollback()
        raise AlreadyArchivedError("Alert already archived", history=get_history_for_alert(db, alert.id)) from exc
    db.refresh(entry)
    logger.info("Alert archived: alert=%s final_status=%s", alert.id, entry.final_status, extra={"event": "alert.archived"})
    return entry


def archive_if_terminal(db: Session, alert: Alert) -> AlertHistory | None:
    """Best-effort archive after a terminal transition.

    Skips silently when an entry already exists. Any other failure is logged as
    ``alert.archive_failed`` and swallowed; nothing re-attempts it later.
    """
    try:
        return archive_alert(db, alert)
    except AlreadyArchivedError:
        return None
    except Exception as exc:  # noqa: BLE001 - archival must not fail the status change
        db.rollback()
        logger.warning(
            "alert.archive_failed alert=%s status=%s error=%s",
            alert.id,
            alert.status,
            exc,
            extra={"event": "alert.archive_failed", "alert_id": alert.id},
        )
        return None


def list_user_history(
    db: Session,
    user_id: str,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[AlertHistory], int]:
    """Return one page of a user's archive (newest alert first) and the total count."""
    criteria = [AlertHistory.user_id == user_id]
    if status in alert_states.TERMINAL_STATUSES:
        criteria.append(AlertHistory.final_status == status)

    total = db.execute(select(func.count(AlertHistory.id)).where(*criteria)).scalar_one()
    rows = db.execute(
        select(AlertHistory)
        .where(*criteria)
        .order_by(AlertHistory.alert_created_at.desc(), AlertHistory.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return list(rows), total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def get_history_entry(db: Session, history_id: int) -> AlertHistory:
    entry = db.get(AlertHistory, history_id)
    if not entry:
        raise NotFoundError("Alert history not found")
    return entry


def history_stats(db: Session, user_id: str) -> dict:
    """Archive counts for one user, types ordered by frequency."""

    def _count(*criteria) -> int:
        return db.execute(select(func.count(AlertHistory.id)).where(*criteria)).scalar_one()

    count_col = func.count(AlertHistory.id)
    by_type = db.execute(
        select(AlertHistory.type, count_col)
        .where(AlertHistory.user_id == user_id)
        .group_by(AlertHistory.type)
        .order_by(count_col.desc(), AlertHistory.type)
    ).all()
    return {
        "total_alerts": _count(AlertHistory.user_id == user_id),
        "resolved_alerts": _count(AlertHistory.user_id == user_id, AlertHistory.final_status == alert_states.RESOLVED),
        "cancelled_alerts": _count(AlertHistory.user_id == user_id, AlertHistory.final_status == alert_states.CANCELLED),
        "alerts_by_type": [{"type": t, "count": c} for t, c in by_type],
    }


def delete_history_entry(db: Session, history_id: int) -> None:
    """Administrative cleanup; not part of the normal lifecycle."""
    entry = get_history_entry(db, history_id)
    db.delete(entry)
    db.commit()
    logger.info("Alert history deleted: id=%s alert=%s", history_id, entry.original_alert_id)
