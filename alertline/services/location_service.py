"""Live location ingestion for active alerts."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from alertline.core.alert_policies import TRANSIENT_ERROR_MARKERS, TRANSIENT_ERROR_NAMES, UPDATING_ADDRESS
from alertline.core.config import settings
from alertline.core.errors import NotFoundError, StorageError, ValidationError
from alertline.core.relay import LOCATION_UPDATE, USER_OFFLINE, EventPublisher
from alertline.models.alert import Alert
from alertline.schemas.alert import AlertLocationUpdate

logger = logging.getLogger(__name__)


def is_transient_error(exc: BaseException) -> bool:
    """True for network-class storage failures worth one retry."""
    names = {type(exc).__name__}
    orig = getattr(exc, "orig", None)
    if orig is not None:
        names.add(type(orig).__name__)
    if names & TRANSIENT_ERROR_NAMES:
        return True
    message = str(exc)
    return any(marker.lower() in message.lower() for marker in TRANSIENT_ERROR_MARKERS)


def _apply_location(db: Session, alert_id: str, data: AlertLocationUpdate, now: datetime) -> Alert | None:
    """Set the current point and append it to the bounded history in one commit."""
    alert = db.get(Alert, alert_id, with_for_update=True)
    if alert is None:
        return None

    alert.location = {
        "latitude": data.latitude,
        "longitude": data.longitude,
        "accuracy": data.accuracy,
        "address": data.address or UPDATING_ADDRESS,
    }
    history = list(alert.location_history or [])
    history.append(
        {
            "latitude": data.latitude,
            "longitude": data.longitude,
            "accuracy": data.accuracy,
            "timestamp": now.isoformat(),
        }
    )
    # Keep only the most recent points
    alert.location_history = history[-settings.location_history_limit:]
    alert.last_location_update = now
    alert.is_online = True
    db.commit()
    db.refresh(alert)
    return alert


def push_location(db: Session, alert_id: str, data: AlertLocationUpdate, publisher: EventPublisher) -> Alert:
    """Record a location sample for an alert.

    Zero coordinates are rejected along with missing ones. A transient storage
    error gets exactly one retry after a short delay.
    """
    if not data.latitude or not data.longitude:
        raise ValidationError("Latitude and longitude are required")

    now = datetime.now(timezone.utc)
    try:
        alert = _apply_location(db, alert_id, data, now)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Location update DB error (first attempt): alert=%s error=%s", alert_id, exc)
        if not is_transient_error(exc):
            raise StorageError("Failed to store location update") from exc
        time.sleep(settings.location_retry_delay_ms / 1000)
        try:
            alert = _apply_location(db, alert_id, data, now)
        except SQLAlchemyError as retry_exc:
            db.rollback()
            logger.error("Location update DB error (retry failed): alert=%s error=%s", alert_id, retry_exc)
            raise StorageError("Failed to store location update") from retry_exc

    if alert is None:
        raise NotFoundError("Alert not found")

    publisher.publish(
        LOCATION_UPDATE,
        {
            "alert_id": alert.id,
            "location": alert.location,
            "last_location_update": alert.last_location_update,
            "is_online": True,
        },
    )
    return alert


def mark_offline(db: Session, alert_id: str, publisher: EventPublisher) -> Alert:
    """Flag the reporter as offline. Only a later successful push flips it back."""
    alert = db.get(Alert, alert_id)
    if alert is None:
        raise NotFoundError("Alert not found")
    alert.is_online = False
    db.commit()
    db.refresh(alert)
    logger.info("Alert reporter offline: id=%s", alert.id)

    publisher.publish(USER_OFFLINE, {"alert_id": alert.id})
    return alert
