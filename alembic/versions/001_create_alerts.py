"""Create alerts and alert_history tables.

Revision ID: 001
Revises:
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "alerts",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("location", sa.JSON(), nullable=False),
        sa.Column("location_history", sa.JSON(), nullable=False),
        sa.Column("last_location_update", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("user_phone", sa.String(64), nullable=False),
        sa.Column("emergency_contacts", sa.JSON(), nullable=False),
        sa.Column("responder_id", sa.String(64), nullable=True),
        sa.Column("responder_name", sa.String(255), nullable=True),
        sa.Column("response_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_alerts_type"), "alerts", ["type"], unique=False)
    op.create_index(op.f("ix_alerts_user_id"), "alerts", ["user_id"], unique=False)
    op.create_index(op.f("ix_alerts_responder_id"), "alerts", ["responder_id"], unique=False)
    op.create_index(op.f("ix_alerts_created_at"), "alerts", ["created_at"], unique=False)

    op.create_table(
        "alert_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("original_alert_id", sa.String(32), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.JSON(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False),
        sa.Column("user_phone", sa.String(64), nullable=False),
        sa.Column("emergency_contacts", sa.JSON(), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("final_status", sa.String(20), nullable=False),
        sa.Column("responder_id", sa.String(64), nullable=True),
        sa.Column("responder_name", sa.String(255), nullable=True),
        sa.Column("response_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("alert_created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("alert_updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("original_alert_id"),
    )
    op.create_index(op.f("ix_alert_history_user_id"), "alert_history", ["user_id"], unique=False)
    op.create_index(op.f("ix_alert_history_final_status"), "alert_history", ["final_status"], unique=False)
    op.create_index(op.f("ix_alert_history_alert_created_at"), "alert_history", ["alert_created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_alert_history_alert_created_at"), table_name="alert_history")
    op.drop_index(op.f("ix_alert_history_final_status"), table_name="alert_history")
    op.drop_index(op.f("ix_alert_history_user_id"), table_name="alert_history")
    op.drop_table("alert_history")
    op.drop_index(op.f("ix_alerts_created_at"), table_name="alerts")
    op.drop_index(op.f("ix_alerts_responder_id"), table_name="alerts")
    op.drop_index(op.f("ix_alerts_user_id"), table_name="alerts")
    op.drop_index(op.f("ix_alerts_type"), table_name="alerts")
    op.drop_table("alerts")
