"""Doctor model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, Table, Text, Uuid

from app.models.base import metadata, utc_now

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Profile
    Column("name", String(200), nullable=False),
    Column("speciality", String(200), nullable=False, index=True),
    Column("description", Text, nullable=False),
    Column("image_url", Text),
    # Contact
    Column("email", String(254)),
    Column("phone", String(20)),
    Column("address", Text),
    # {"years": int, "patientsServed": int, "specializations": [str]}
    Column("experience", JSON),
    # [{"day": str, "startTime": str, "endTime": str, "isAvailable": bool}]
    Column("working_hours", JSON),
    # Identity uid of the user who created the record
    Column("created_by", String(128)),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utc_now),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    ),
)
