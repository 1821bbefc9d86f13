"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from app.dependencies import DatabaseSession
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    CompletionResponse,
)
from app.schemas.base import MessageResponse
from app.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(db: DatabaseSession) -> list[dict]:
    """
    List all appointments, newest first.

    Each appointment carries a `doctor` summary (`_id`, `name`,
    `speciality`, `imageUrl`), or null when the doctor no longer exists.
    """
    service = AppointmentService(db)
    return await service.list_appointments()


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    db: DatabaseSession,
) -> dict:
    """
    Book an appointment.

    Args:
        data: Doctor id, patient details and the requested date/time
        db: Database session

    Returns:
        Created appointment, `pending` unless a status was given

    Raises:
        SlotConflictException: If the doctor already has an active booking
            at that date and time
    """
    service = AppointmentService(db)
    return await service.create_appointment(data)


@router.post(
    "/complete-elapsed",
    response_model=CompletionResponse,
    status_code=status.HTTP_200_OK,
    summary="Complete past appointments",
)
async def complete_elapsed_appointments(db: DatabaseSession) -> CompletionResponse:
    """Move confirmed appointments whose date and time have passed to `completed`."""
    service = AppointmentService(db)
    return CompletionResponse(completed=await service.complete_elapsed())


@router.get(
    "/doctor/{doctor_id}",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List a doctor's appointments",
)
async def list_doctor_appointments(doctor_id: UUID, db: DatabaseSession) -> list[dict]:
    """List every appointment of a doctor, whatever its status."""
    service = AppointmentService(db)
    return await service.list_doctor_appointments(doctor_id)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(appointment_id: UUID, db: DatabaseSession) -> dict:
    """Get a specific appointment by ID."""
    service = AppointmentService(db)
    return await service.get_appointment(appointment_id)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    db: DatabaseSession,
) -> dict:
    """
    Update an appointment's status, slot or patient details.

    Args:
        appointment_id: Appointment ID
        data: Fields to change
        db: Database session

    Returns:
        Updated appointment

    Raises:
        NotFoundException: If the appointment does not exist
        SlotConflictException: If the new date/time is already booked
    """
    service = AppointmentService(db)
    return await service.update_appointment(appointment_id, data)


@router.delete(
    "/{appointment_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete appointment",
)
async def delete_appointment(appointment_id: UUID, db: DatabaseSession) -> MessageResponse:
    """Permanently delete an appointment."""
    service = AppointmentService(db)
    await service.delete_appointment(appointment_id)
    return MessageResponse(message="Appointment deleted successfully")
