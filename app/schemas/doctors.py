"""Doctor schemas for request/response validation."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import CamelModel

EMAIL_PATTERN = re.compile(r"^[\w-]+(\.[\w-]+)*@([\w-]+\.)+[a-zA-Z]{2,7}$")
PHONE_PATTERN = r"^(\+\d{1,3}[-.]?)?\d{10}$"


class DoctorExperience(CamelModel):
    """Experience summary shown on the doctor profile."""

    years: int | None = Field(None, ge=0)
    patients_served: int | None = Field(None, ge=0)
    specializations: list[str] = Field(default_factory=list)


class WorkingHours(CamelModel):
    """One day-of-week entry of the weekly working-hours table."""

    day: str = Field(..., min_length=1, max_length=20)
    start_time: str | None = None
    end_time: str | None = None
    is_available: bool = True


def _normalize_email(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Please enter a valid email address")
    return v


class DoctorBase(CamelModel):
    """Base schema for doctor."""

    name: str = Field(..., min_length=1, max_length=200)
    speciality: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    email: str | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = None
    experience: DoctorExperience | None = None
    working_hours: list[WorkingHours] | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Lowercase and validate the contact email."""
        return _normalize_email(v)


class DoctorCreate(DoctorBase):
    """Schema for creating a doctor."""


class DoctorUpdate(CamelModel):
    """Schema for updating a doctor. Only provided fields are changed."""

    name: str | None = Field(None, min_length=1, max_length=200)
    speciality: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    email: str | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = None
    experience: DoctorExperience | None = None
    working_hours: list[WorkingHours] | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Lowercase and validate the contact email."""
        return _normalize_email(v)


class DoctorResponse(DoctorBase):
    """Doctor response schema."""

    id: UUID = Field(..., alias="_id")
    image_url: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
