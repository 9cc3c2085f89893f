"""Alert history schemas."""

from datetime import datetime

from pydantic import BaseModel

from alertline.schemas.alert import EmergencyContact, LocationPoint


class AlertHistoryResponse(BaseModel):
    id: int
    original_alert_id: str
    type: str
    description: str
    location: LocationPoint
    user_id: str
    user_name: str
    user_phone: str
    emergency_contacts: list[EmergencyContact] = []
    priority: str
    final_status: str
    responder_id: str | None = None
    responder_name: str | None = None
    response_time: datetime | None = None
    resolved_time: datetime | None = None
    alert_created_at: datetime
    alert_updated_at: datetime
    notes: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ArchiveResponse(BaseModel):
    message: str
    history: AlertHistoryResponse


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class AlertHistoryPage(BaseModel):
    history: list[AlertHistoryResponse]
    pagination: Pagination


class TypeCount(BaseModel):
    type: str
    count: int


class AlertHistoryStats(BaseModel):
    total_alerts: int
    resolved_alerts: int
    cancelled_alerts: int
    alerts_by_type: list[TypeCount]
