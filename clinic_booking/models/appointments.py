"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Table,
    Text,
    Uuid,
    text,
)

from clinic_booking.models.base import empty_list, metadata, utcnow

LIVE_STATUS_CLAUSE = "status IN ('pending', 'confirmed', 'rescheduled')"

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Parties
    Column("user_id", Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
    Column("doctor_id", Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
    # Request payload
    Column("disease_category", Text, nullable=False),
    Column("symptoms", Text),
    Column("details", Text),
    Column("preferred_date", Date, nullable=False),
    Column("preferred_start", Text),
    Column("preferred_end", Text),
    # Committed slot
    Column("scheduled_date", Date),
    Column("scheduled_start", Text),
    Column("scheduled_end", Text),
    # Status management
    Column("status", Text, nullable=False, server_default="pending"),
    Column("cancellation_reason", Text),
    Column("confirmation_message", Text),
    Column("confirmation_sent_at", DateTime(timezone=True)),
    Column("completed_at", DateTime(timezone=True)),
    Column("follow_up_date", Date),
    # Append-only logs
    Column("reschedule_history", JSON, nullable=False, default=empty_list),
    Column("notes", JSON, nullable=False, default=empty_list),
    Column("prescriptions", JSON, nullable=False, default=empty_list),
    Column("documents", JSON, nullable=False, default=empty_list),
    # Audit fields
    Column("created_by", Uuid),
    Column("updated_by", Uuid),
    Column("assigned_by", Uuid),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'rescheduled', 'completed', 'cancelled', 'declined')",
        name="appointments_status_check",
    ),
)

# A doctor holds at most one live appointment per (date, start). Backs up the
# read-then-write conflict check when two assignments race.
Index(
    "uq_appointments_live_doctor_slot",
    appointments.c.doctor_id,
    appointments.c.scheduled_date,
    appointments.c.scheduled_start,
    unique=True,
    postgresql_where=text(LIVE_STATUS_CLAUSE),
    sqlite_where=text(LIVE_STATUS_CLAUSE),
)
