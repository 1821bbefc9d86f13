"""Shared table metadata and column defaults."""

from datetime import UTC, datetime

from sqlalchemy import MetaData

# Metadata for all tables
metadata = MetaData()


def utc_now() -> datetime:
    """Current UTC time for audit columns."""
    return datetime.now(UTC)
