"""Shared metadata and column helpers."""

from datetime import UTC, datetime

from sqlalchemy import MetaData

# Metadata for all tables
metadata = MetaData()


def utcnow() -> datetime:
    """Timestamp default for audit columns."""
    return datetime.now(UTC)


def empty_list() -> list:
    """Default for JSON list columns."""
    return []
