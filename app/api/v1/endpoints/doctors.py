"""Doctor management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.api.v1.forms import build_form_model
from app.dependencies import (
    CacheManagerDep,
    CurrentIdentity,
    DatabaseSession,
    MediaStorageDep,
    get_current_identity,
)
from app.schemas.base import MessageResponse
from app.schemas.doctors import DoctorCreate, DoctorResponse, DoctorUpdate
from app.services.doctor_service import DoctorService

router = APIRouter()

JSON_FIELDS = ("experience", "workingHours")


def get_doctor_service(storage: MediaStorageDep, cache_manager: CacheManagerDep) -> DoctorService:
    """Get doctor service instance."""
    return DoctorService(storage=storage, cache_manager=cache_manager)


@router.get("", response_model=list[DoctorResponse])
async def list_doctors(
    db: DatabaseSession,
    limit: int = Query(0, ge=0, description="Maximum number of doctors, 0 for all"),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """
    List doctors.

    - **limit**: cap on the number of results; omit or 0 to return all
    """
    doctors_list = await doctor_service.get_doctors(db, limit=limit)
    return [DoctorResponse.model_validate(d) for d in doctors_list]


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    doctor_id: UUID,
    db: DatabaseSession,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """Get doctor details by ID."""
    return await doctor_service.get_doctor_by_id(db, doctor_id)


@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    db: DatabaseSession,
    identity: CurrentIdentity,
    name: str = Form(...),
    speciality: str = Form(...),
    description: str = Form(...),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    address: str | None = Form(None),
    experience: str | None = Form(None, description="JSON-encoded experience summary"),
    working_hours: str | None = Form(
        None, alias="workingHours", description="JSON-encoded list of working hours"
    ),
    image: UploadFile | None = File(None, alias="imageUrl"),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """
    Create a new doctor profile.

    Multipart form. `experience` and `workingHours` are JSON strings; the
    optional `imageUrl` file is stored and its URL saved on the doctor.
    """
    doctor_data = build_form_model(
        DoctorCreate,
        {
            "name": name,
            "speciality": speciality,
            "description": description,
            "email": email,
            "phone": phone,
            "address": address,
            "experience": experience,
            "workingHours": working_hours,
        },
        json_fields=JSON_FIELDS,
    )

    return await doctor_service.create_doctor(
        db,
        doctor_data,
        image=image,
        created_by=identity["uid"] if identity else None,
    )


@router.put(
    "/{doctor_id}",
    response_model=DoctorResponse,
    dependencies=[Depends(get_current_identity)],
)
async def update_doctor(
    doctor_id: UUID,
    db: DatabaseSession,
    name: str | None = Form(None),
    speciality: str | None = Form(None),
    description: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    address: str | None = Form(None),
    experience: str | None = Form(None),
    working_hours: str | None = Form(None, alias="workingHours"),
    image: UploadFile | None = File(None, alias="imageUrl"),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """
    Update doctor information.

    All fields are optional. Only provided fields will be updated; a new
    `imageUrl` file replaces the stored photo.
    """
    doctor_data = build_form_model(
        DoctorUpdate,
        {
            "name": name,
            "speciality": speciality,
            "description": description,
            "email": email,
            "phone": phone,
            "address": address,
            "experience": experience,
            "workingHours": working_hours,
        },
        json_fields=JSON_FIELDS,
    )

    return await doctor_service.update_doctor(db, doctor_id, doctor_data, image=image)


@router.delete(
    "/{doctor_id}",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_identity)],
)
async def delete_doctor(
    doctor_id: UUID,
    db: DatabaseSession,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """Delete a doctor and its stored photo."""
    await doctor_service.delete_doctor(db, doctor_id)
    return MessageResponse(message="Doctor deleted successfully")
