"""Doctor availability profile table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Table,
    Text,
    Uuid,
)

from clinic_booking.models.base import empty_list, metadata, utcnow

doctor_profiles = Table(
    "doctor_profiles",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    ),
    # Professional details
    Column("specialization", Text, nullable=False, index=True),
    Column("experience", Integer, nullable=False, default=0),
    Column("education", Text),
    Column("description", Text),
    Column("photo_url", Text),
    Column("consultation_fee", Float),
    # Availability: list of slot objects, unordered and possibly overlapping
    Column("availability", JSON, nullable=False, default=empty_list),
    Column("emergency_holidays", JSON, nullable=False, default=empty_list),
    # Ratings
    Column("rating_average", Float, nullable=False, default=0.0),
    Column("rating_count", Integer, nullable=False, default=0),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
)
