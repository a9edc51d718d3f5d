"""Accounts table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Table,
    Text,
    Uuid,
)

from clinic_booking.models.base import metadata, utcnow

accounts = Table(
    "accounts",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", Text, nullable=False),
    # Stored lower-cased; unique across every role
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    Column("role", Text, nullable=False, server_default="user"),
    # Account state
    Column("is_active", Boolean, nullable=False, default=True),
    Column("last_login_at", DateTime(timezone=True)),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    CheckConstraint("role IN ('admin', 'doctor', 'user')", name="accounts_role_check"),
)
