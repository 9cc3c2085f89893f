"""Alert model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from alertline.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Alert(Base):
    """Emergency raised by a citizen and tracked until resolved or cancelled."""

    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)  # low | medium | high | critical
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending | responding | resolved | cancelled

    location: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    location_history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    last_location_update: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Reporter snapshot taken at creation
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_phone: Mapped[str] = mapped_column(String(64), nullable=False)
    emergency_contacts: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    responder_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    responder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    response_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
