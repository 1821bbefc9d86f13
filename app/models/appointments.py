"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from app.models.base import metadata, utc_now

APPOINTMENT_STATUSES = ("pending", "confirmed", "cancelled", "completed")

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Plain reference, deleting a doctor leaves its appointments in place
    Column("doctor_id", Uuid, nullable=False, index=True),
    # Patient
    Column("patient_name", Text, nullable=False),
    Column("patient_email", String(254), nullable=False),
    # Slot, compared as plain strings
    Column("date", String(32), nullable=False),
    Column("time", String(32), nullable=False),
    # Status management
    Column("status", String(16), nullable=False, default="pending", server_default="pending"),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, default=utc_now),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    ),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
        name="appointments_status_check",
    ),
    # At most one non-cancelled appointment per slot
    Index(
        "uq_appointments_active_slot",
        "doctor_id",
        "date",
        "time",
        unique=True,
        postgresql_where=text("status <> 'cancelled'"),
        sqlite_where=text("status <> 'cancelled'"),
    ),
)
