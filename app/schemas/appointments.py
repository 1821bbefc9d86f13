"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.schemas.base import CamelModel


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class AppointmentBase(CamelModel):
    """Base appointment schema with common fields."""

    patient_name: str = Field(..., min_length=1, max_length=200)
    patient_email: EmailStr
    # Slots are compared as plain strings, e.g. "2025-06-01" / "09:00"
    date: str = Field(..., min_length=1, max_length=32)
    time: str = Field(..., min_length=1, max_length=32)

    @field_validator("patient_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim the patient name."""
        v = v.strip()
        if not v:
            raise ValueError("Patient name cannot be blank")
        return v

    @field_validator("patient_email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Store emails lowercased."""
        return v.strip().lower()


class AppointmentCreate(AppointmentBase):
    """Schema for booking a new appointment."""

    doctor_id: UUID
    status: AppointmentStatus | None = None


class AppointmentUpdate(CamelModel):
    """Partial update: status change, reschedule or patient details."""

    patient_name: str | None = Field(None, min_length=1, max_length=200)
    patient_email: EmailStr | None = None
    date: str | None = Field(None, min_length=1, max_length=32)
    time: str | None = Field(None, min_length=1, max_length=32)
    status: AppointmentStatus | None = None

    @field_validator("patient_name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        """Trim the patient name when one is given."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Patient name cannot be blank")
        return v

    @field_validator("patient_email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        """Store emails lowercased."""
        return v.strip().lower() if v else v


class AppointmentDoctor(CamelModel):
    """Doctor summary embedded in appointment responses."""

    id: UUID = Field(..., alias="_id")
    name: str
    speciality: str
    image_url: str | None = None


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    id: UUID = Field(..., alias="_id")
    doctor_id: UUID
    doctor: AppointmentDoctor | None = None
    patient_name: str
    patient_email: str
    date: str
    time: str
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime


class CompletionResponse(CamelModel):
    """Result of the completion sweep."""

    completed: int
