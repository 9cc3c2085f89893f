"""Alerts API."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from alertline.core.alert_policies import DEFAULT_LIST_LIMIT
from alertline.core.errors import AlertError, NotFoundError, StorageError, TransitionError, ValidationError
from alertline.core.relay import EventPublisher, get_publisher
from alertline.db.session import get_db
from alertline.models.alert import Alert
from alertline.schemas.alert import (
    AlertCreate,
    AlertEnvelope,
    AlertListResponse,
    AlertLocationUpdate,
    AlertResponse,
    AlertStats,
    AlertStatusUpdate,
    AlertSummary,
    SummaryLocation,
    UserAlertsResponse,
)
from alertline.services.alert_service import (
    alert_stats,
    create_alert,
    format_idle_time,
    get_alert,
    idle_minutes,
    list_alerts,
    list_user_alerts,
    relative_time,
    set_status,
)
from alertline.services.location_service import mark_offline, push_location

router = APIRouter(prefix="/alerts", tags=["alerts"])


def _http_error(exc: AlertError) -> HTTPException:
    """Map a service error to its HTTP status."""
    if isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, TransitionError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, StorageError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


def _summarize(alert: Alert, now: datetime) -> AlertSummary:
    """Dashboard projection with idle time since the last location update."""
    minutes = idle_minutes(alert.last_location_update or alert.updated_at, now)
    loc = alert.location
    return AlertSummary(
        id=alert.id,
        type=alert.type,
        priority=alert.priority,
        location=SummaryLocation(
            lat=loc["latitude"],
            lng=loc["longitude"],
            address=loc.get("address"),
            accuracy=loc.get("accuracy"),
        ),
        description=alert.description,
        time=relative_time(alert.created_at, now),
        status=alert.status,
        user_name=alert.user_name,
        user_phone=alert.user_phone,
        emergency_contacts=alert.emergency_contacts or [],
        responder_id=alert.responder_id,
        responder_name=alert.responder_name,
        created_at=alert.created_at,
        last_location_update=alert.last_location_update,
        is_online=alert.is_online is not False,
        idle_time=format_idle_time(minutes),
        idle_minutes=minutes,
    )


@router.post("", response_model=AlertEnvelope, status_code=status.HTTP_201_CREATED)
def create(
    data: AlertCreate,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
):
    """Raise a new alert from the mobile app."""
    try:
        alert = create_alert(db, data, publisher)
    except AlertError as e:
        raise _http_error(e)
    return AlertEnvelope(message="Alert created successfully", alert=AlertResponse.model_validate(alert))


@router.get("", response_model=AlertListResponse)
def list_all(
    status_filter: str | None = Query(default=None, alias="status"),
    alert_type: str | None = Query(default=None, alias="type"),
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Responder dashboard listing, newest first."""
    now = datetime.now(timezone.utc)
    alerts = [_summarize(a, now) for a in list_alerts(db, status_filter, alert_type, limit)]
    return AlertListResponse(alerts=alerts, total=len(alerts))


# Static paths before {alert_id}


@router.get("/stats/summary", response_model=AlertStats)
def stats(db: Session = Depends(get_db)):
    """Counts by status and type."""
    return alert_stats(db)


@router.get("/user/{user_id}", response_model=UserAlertsResponse)
def list_for_user(user_id: str, db: Session = Depends(get_db)):
    alerts = list_user_alerts(db, user_id)
    return UserAlertsResponse(
        alerts=[AlertResponse.model_validate(a) for a in alerts],
        total=len(alerts),
    )


@router.get("/{alert_id}", response_model=AlertEnvelope)
def get_one(alert_id: str, db: Session = Depends(get_db)):
    try:
        alert = get_alert(db, alert_id)
    except AlertError as e:
        raise _http_error(e)
    return AlertEnvelope(alert=AlertResponse.model_validate(alert))


@router.patch("/{alert_id}/status", response_model=AlertEnvelope)
def update_status(
    alert_id: str,
    data: AlertStatusUpdate,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
):
    """Responder claims, resolves or cancels an alert."""
    try:
        alert = set_status(db, alert_id, data, publisher)
    except AlertError as e:
        raise _http_error(e)
    return AlertEnvelope(message="Alert updated successfully", alert=AlertResponse.model_validate(alert))


@router.patch("/{alert_id}/location", response_model=AlertEnvelope)
def update_location(
    alert_id: str,
    data: AlertLocationUpdate,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
):
    """Continuous GPS tracking push."""
    try:
        alert = push_location(db, alert_id, data, publisher)
    except AlertError as e:
        raise _http_error(e)
    return AlertEnvelope(message="Location updated", alert=AlertResponse.model_validate(alert))


@router.patch("/{alert_id}/offline", response_model=AlertEnvelope)
def set_offline(
    alert_id: str,
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
):
    """Mark the reporter offline (connection loss detected by the app)."""
    try:
        alert = mark_offline(db, alert_id, publisher)
    except AlertError as e:
        raise _http_error(e)
    return AlertEnvelope(message="User marked offline", alert=AlertResponse.model_validate(alert))
