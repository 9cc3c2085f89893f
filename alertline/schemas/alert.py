"""Alert schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class LocationIn(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = None
    address: str | None = None


class EmergencyContact(BaseModel):
    name: str | None = None
    phone: str | None = None
    relationship: str | None = None


class AlertCreate(BaseModel):
    """Alert submitted by the mobile app. ``type`` and ``location`` are checked by the service."""

    type: str | None = None
    description: str | None = None
    location: LocationIn | None = None
    user_id: str | None = None
    user_name: str | None = None
    user_phone: str | None = None
    emergency_contacts: list[EmergencyContact] = []


class AlertStatusUpdate(BaseModel):
    status: str | None = None
    responder_id: str | None = None
    responder_name: str | None = None


class AlertLocationUpdate(BaseModel):
    """Live location push. Zero coordinates count as missing."""

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    accuracy: float | None = None
    address: str | None = None


class LocationPoint(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None
    address: str | None = None


class LocationSample(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None
    timestamp: datetime


class AlertResponse(BaseModel):
    id: str
    type: str
    description: str
    priority: str
    status: str
    location: LocationPoint
    location_history: list[LocationSample] = []
    last_location_update: datetime
    is_online: bool
    user_id: str
    user_name: str
    user_phone: str
    emergency_contacts: list[EmergencyContact] = []
    responder_id: str | None = None
    responder_name: str | None = None
    response_time: datetime | None = None
    resolved_time: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AlertEnvelope(BaseModel):
    message: str | None = None
    alert: AlertResponse


class SummaryLocation(BaseModel):
    lat: float
    lng: float
    address: str | None = None
    accuracy: float | None = None


class AlertSummary(BaseModel):
    """Alert row as shown on the responder dashboard."""

    id: str
    type: str
    priority: str
    location: SummaryLocation
    description: str
    time: str
    status: str
    user_name: str
    user_phone: str
    emergency_contacts: list[EmergencyContact] = []
    responder_id: str | None = None
    responder_name: str | None = None
    created_at: datetime
    last_location_update: datetime
    is_online: bool
    idle_time: str
    idle_minutes: int


class AlertListResponse(BaseModel):
    alerts: list[AlertSummary]
    total: int


class UserAlertsResponse(BaseModel):
    alerts: list[AlertResponse]
    total: int


class AlertStats(BaseModel):
    total: int
    pending: int
    responding: int
    resolved: int
    cancelled: int
    last_24_hours: int
    by_type: dict[str, int]
