"""Alert history model - archived copy of a terminated alert."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from alertline.db.base import Base


class AlertHistory(Base):
    """Immutable archive entry, at most one per original alert."""

    __tablename__ = "alert_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    original_alert_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_phone: Mapped[str] = mapped_column(String(64), nullable=False)
    emergency_contacts: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    final_status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # resolved | cancelled
    responder_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    responder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    response_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    alert_created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    alert_updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
