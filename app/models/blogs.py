"""Blog model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Table, Text, Uuid

from app.models.base import metadata, utc_now

blogs = Table(
    "blogs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("title", String(300), nullable=False),
    Column("short_description", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("author", String(200), nullable=False),
    Column("image_url", Text),
    Column("created_by", String(128)),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utc_now, index=True),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    ),
)
