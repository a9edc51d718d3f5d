"""Patient profile table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Table,
    Text,
    Uuid,
)

from clinic_booking.models.base import empty_list, metadata, utcnow

user_profiles = Table(
    "user_profiles",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "user_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    ),
    # Medical background
    Column("age", Integer),
    Column("gender", Text),
    Column("disease_type", Text),
    Column("symptoms", Text),
    Column("medical_history", Text),
    Column("emergency_contact", JSON),
    Column("medical_reports", JSON, nullable=False, default=empty_list),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    CheckConstraint(
        "gender IS NULL OR gender IN ('male', 'female', 'other')",
        name="user_profiles_gender_check",
    ),
    CheckConstraint("age IS NULL OR age >= 0", name="user_profiles_age_check"),
)
