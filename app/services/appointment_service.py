"""Appointment service for business logic.

A slot is the ``(doctor_id, date, time)`` triple. At most one appointment
that is not cancelled may hold a slot. The service checks this before every
write that could take a slot, and the partial unique index on the table
turns a lost race into the same conflict error.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException, SlotConflictException
from app.models.appointments import appointments
from app.models.doctors import doctors
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
)

logger = structlog.get_logger(__name__)

SLOT_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S")


def parse_slot(date: str, time: str) -> datetime | None:
    """Parse a stored date/time pair, or return None if it is not in a known format."""
    for fmt in SLOT_FORMATS:
        try:
            return datetime.strptime(f"{date.strip()} {time.strip()}", fmt)
        except ValueError:
            continue
    return None


def _with_doctor():
    """Select appointments with the referenced doctor's summary fields."""
    return select(
        appointments,
        doctors.c.name.label("doctor_name"),
        doctors.c.speciality.label("doctor_speciality"),
        doctors.c.image_url.label("doctor_image_url"),
    ).select_from(appointments.outerjoin(doctors, appointments.c.doctor_id == doctors.c.id))


def _to_record(row: Any) -> dict:
    """Turn a joined row into an appointment dict with a nested ``doctor``."""
    data = dict(row)
    name = data.pop("doctor_name")
    speciality = data.pop("doctor_speciality")
    image_url = data.pop("doctor_image_url")

    data["doctor"] = (
        {
            "id": data["doctor_id"],
            "name": name,
            "speciality": speciality,
            "image_url": image_url,
        }
        if name is not None
        else None
    )
    return data


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _ensure_slot_free(
        self,
        doctor_id: UUID,
        date: str,
        time: str,
        exclude_id: UUID | None = None,
    ) -> None:
        """Raise SlotConflictException if another active appointment holds the slot."""
        conditions = [
            appointments.c.doctor_id == doctor_id,
            appointments.c.date == date,
            appointments.c.time == time,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        stmt = select(appointments.c.id).where(and_(*conditions)).limit(1)
        result = await self.db.execute(stmt)

        if result.first() is not None:
            logger.info(
                "appointment_slot_conflict",
                doctor_id=str(doctor_id),
                date=date,
                time=time,
            )
            raise SlotConflictException()

    async def _execute_slot_write(self, stmt: Any) -> Any:
        """Execute a write that may take a slot, mapping index violations to conflicts."""
        try:
            result = await self.db.execute(stmt)
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("appointment_slot_conflict", source="unique_index")
            raise SlotConflictException() from e

        await self.db.commit()
        return result

    async def create_appointment(self, data: AppointmentCreate) -> dict:
        """
        Book a new appointment.

        Args:
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            SlotConflictException: If the slot is already booked
        """
        status = data.status or AppointmentStatus.PENDING

        if status != AppointmentStatus.CANCELLED:
            await self._ensure_slot_free(data.doctor_id, data.date, data.time)

        stmt = (
            insert(appointments)
            .values(
                doctor_id=data.doctor_id,
                patient_name=data.patient_name,
                patient_email=data.patient_email,
                date=data.date,
                time=data.time,
                status=status.value,
            )
            .returning(appointments.c.id)
        )

        result = await self._execute_slot_write(stmt)
        appointment_id = result.scalar_one()

        logger.info(
            "appointment_created",
            appointment_id=str(appointment_id),
            doctor_id=str(data.doctor_id),
            status=status.value,
        )
        return await self.get_appointment(appointment_id)

    async def get_appointment(self, appointment_id: UUID) -> dict:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        stmt = _with_doctor().where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        return _to_record(row)

    async def list_appointments(self) -> list[dict]:
        """List all appointments, newest first."""
        stmt = _with_doctor().order_by(appointments.c.created_at.desc())
        result = await self.db.execute(stmt)
        return [_to_record(row) for row in result.mappings().all()]

    async def list_doctor_appointments(self, doctor_id: UUID) -> list[dict]:
        """List every appointment of a doctor regardless of status."""
        stmt = (
            _with_doctor()
            .where(appointments.c.doctor_id == doctor_id)
            .order_by(appointments.c.date, appointments.c.time, appointments.c.created_at)
        )
        result = await self.db.execute(stmt)
        return [_to_record(row) for row in result.mappings().all()]

    async def update_appointment(
        self,
        appointment_id: UUID,
        data: AppointmentUpdate,
    ) -> dict:
        """
        Update status, reschedule, or edit patient details.

        Moving to a different date/time re-checks the slot, excluding the
        appointment itself. Status changes are accepted without a transition
        graph; reviving a cancelled appointment re-checks its slot because
        cancelled appointments do not hold one.

        Raises:
            NotFoundException: If appointment not found
            SlotConflictException: If the target slot is taken
        """
        current = await self.get_appointment(appointment_id)

        update_values: dict[str, Any] = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if data.status is not None:
            update_values["status"] = data.status.value

        if not update_values:
            return current

        new_date = update_values.get("date", current["date"])
        new_time = update_values.get("time", current["time"])
        new_status = update_values.get("status", current["status"])

        slot_changed = new_date != current["date"] or new_time != current["time"]
        revived = (
            current["status"] == AppointmentStatus.CANCELLED.value
            and new_status != AppointmentStatus.CANCELLED.value
        )

        if new_status != AppointmentStatus.CANCELLED.value and (slot_changed or revived):
            await self._ensure_slot_free(
                current["doctor_id"],
                new_date,
                new_time,
                exclude_id=appointment_id,
            )

        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(**update_values)
        )

        await self._execute_slot_write(stmt)

        if new_status != current["status"]:
            logger.info(
                "appointment_status_changed",
                appointment_id=str(appointment_id),
                old_status=current["status"],
                new_status=new_status,
            )
        if slot_changed:
            logger.info(
                "appointment_rescheduled",
                appointment_id=str(appointment_id),
                date=new_date,
                time=new_time,
            )

        return await self.get_appointment(appointment_id)

    async def delete_appointment(self, appointment_id: UUID) -> None:
        """
        Permanently delete an appointment.

        Raises:
            NotFoundException: If appointment not found
        """
        stmt = (
            delete(appointments)
            .where(appointments.c.id == appointment_id)
            .returning(appointments.c.id)
        )
        result = await self.db.execute(stmt)
        deleted = result.first()

        if deleted is None:
            await self.db.rollback()
            raise NotFoundException("Appointment not found")

        await self.db.commit()
        logger.info("appointment_deleted", appointment_id=str(appointment_id))

    async def complete_elapsed(self, now: datetime | None = None) -> int:
        """
        Mark confirmed appointments whose slot has passed as completed.

        Slots carry no timezone, so they are compared against naive local
        time. Slots that do not parse are left alone.

        Args:
            now: Reference time, defaults to the current local time

        Returns:
            Number of appointments moved to completed
        """
        now = now or datetime.now()

        stmt = select(appointments.c.id, appointments.c.date, appointments.c.time).where(
            appointments.c.status == AppointmentStatus.CONFIRMED.value
        )
        result = await self.db.execute(stmt)

        elapsed = []
        for row in result.all():
            slot = parse_slot(row.date, row.time)
            if slot is not None and slot < now:
                elapsed.append(row.id)

        if not elapsed:
            return 0

        await self.db.execute(
            update(appointments)
            .where(appointments.c.id.in_(elapsed))
            .values(status=AppointmentStatus.COMPLETED.value)
        )
        await self.db.commit()

        logger.info("appointments_completed", count=len(elapsed))
        return len(elapsed)
