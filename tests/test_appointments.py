"""Tests for appointment endpoints and the slot rules."""

from datetime import datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.core.exceptions import SlotConflictException
from app.schemas.appointments import AppointmentCreate, AppointmentUpdate
from app.services.appointment_service import AppointmentService, parse_slot


@pytest.mark.asyncio
async def test_create_appointment(client: AsyncClient, appointment_data: dict, doctor: dict):
    """Test booking an appointment."""
    response = await client.post("/appointments", json=appointment_data)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["patientName"] == "Asha Rao"
    assert data["patientEmail"] == "asha.rao@example.com"
    assert data["date"] == "2025-06-01"
    assert data["time"] == "09:00"
    assert data["doctor"] == {
        "_id": doctor["_id"],
        "name": "Dr. Singh",
        "speciality": "Cardiology",
        "imageUrl": None,
    }
    assert "_id" in data


@pytest.mark.asyncio
async def test_create_appointment_with_explicit_status(
    client: AsyncClient, appointment_data: dict
):
    """Test a booking created directly as confirmed."""
    response = await client.post(
        "/appointments", json={**appointment_data, "status": "confirmed"}
    )

    assert response.status_code == 201
    assert response.json()["status"] == "confirmed"


@pytest.mark.asyncio
async def test_double_booking_is_rejected(client: AsyncClient, appointment_data: dict):
    """Test that the same doctor/date/time can only be booked once."""
    first = await client.post("/appointments", json=appointment_data)
    second = await client.post(
        "/appointments",
        json={**appointment_data, "patientName": "Someone Else", "patientEmail": "x@example.com"},
    )

    assert first.status_code == 201
    assert second.status_code == 400
    body = second.json()
    assert body["success"] is False
    assert body["error"] == "SlotConflictException"
    assert body["message"] == "This time slot is already booked"


@pytest.mark.asyncio
async def test_slot_uses_plain_string_equality(client: AsyncClient, appointment_data: dict):
    """Test that differently written times are distinct slots."""
    first = await client.post("/appointments", json=appointment_data)
    second = await client.post("/appointments", json={**appointment_data, "time": "9:00"})

    assert first.status_code == 201
    assert second.status_code == 201


@pytest.mark.asyncio
async def test_same_slot_different_doctor(client: AsyncClient, appointment_data: dict):
    """Test that the slot is scoped to one doctor."""
    await client.post("/appointments", json=appointment_data)

    response = await client.post(
        "/appointments", json={**appointment_data, "doctorId": str(uuid4())}
    )

    assert response.status_code == 201
    assert response.json()["doctor"] is None


@pytest.mark.asyncio
async def test_cancelled_appointment_frees_slot(client: AsyncClient, appointment_data: dict):
    """Test that a cancelled booking no longer blocks its slot."""
    first = await client.post("/appointments", json=appointment_data)
    appointment_id = first.json()["_id"]

    cancel = await client.put(f"/appointments/{appointment_id}", json={"status": "cancelled"})
    assert cancel.status_code == 200

    rebook = await client.post("/appointments", json=appointment_data)
    assert rebook.status_code == 201


@pytest.mark.asyncio
async def test_reviving_cancelled_appointment_checks_slot(
    client: AsyncClient, appointment_data: dict
):
    """Test that un-cancelling fails if someone else took the slot meanwhile."""
    first = await client.post("/appointments", json=appointment_data)
    appointment_id = first.json()["_id"]
    await client.put(f"/appointments/{appointment_id}", json={"status": "cancelled"})
    await client.post("/appointments", json=appointment_data)

    response = await client.put(f"/appointments/{appointment_id}", json={"status": "confirmed"})

    assert response.status_code == 400
    assert response.json()["message"] == "This time slot is already booked"


@pytest.mark.asyncio
async def test_missing_required_field(client: AsyncClient, appointment_data: dict):
    """Test validation error for an incomplete booking."""
    payload = {k: v for k, v in appointment_data.items() if k != "patientEmail"}

    response = await client.post("/appointments", json=payload)

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "ValidationError"
    assert "details" in body


@pytest.mark.asyncio
async def test_invalid_status_rejected(client: AsyncClient, appointment_data: dict):
    """Test that only known statuses are accepted."""
    response = await client.post(
        "/appointments", json={**appointment_data, "status": "no_show"}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_appointment(client: AsyncClient, appointment_data: dict):
    """Test getting a specific appointment."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.get(f"/appointments/{appointment_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["_id"] == appointment_id
    assert data["doctor"]["name"] == "Dr. Singh"


@pytest.mark.asyncio
async def test_get_appointment_not_found(client: AsyncClient):
    """Test 404 for an unknown appointment."""
    response = await client.get(f"/appointments/{uuid4()}")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "NotFoundException"
    assert body["message"] == "Appointment not found"


@pytest.mark.asyncio
async def test_list_appointments(client: AsyncClient, appointment_data: dict):
    """Test listing every appointment."""
    await client.post("/appointments", json=appointment_data)
    await client.post("/appointments", json={**appointment_data, "time": "10:00"})

    response = await client.get("/appointments")

    assert response.status_code == 200
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_list_appointments_by_doctor(client: AsyncClient, appointment_data: dict):
    """Test that listing by doctor returns only that doctor's appointments."""
    other_doctor_id = str(uuid4())
    await client.post("/appointments", json={**appointment_data, "time": "11:00"})
    await client.post("/appointments", json=appointment_data)
    await client.post("/appointments", json={**appointment_data, "doctorId": other_doctor_id})
    cancelled = await client.post(
        "/appointments", json={**appointment_data, "time": "12:00", "status": "cancelled"}
    )
    assert cancelled.status_code == 201

    response = await client.get(f"/appointments/doctor/{appointment_data['doctorId']}")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 3
    assert {item["doctorId"] for item in data} == {appointment_data["doctorId"]}
    assert [item["time"] for item in data] == ["09:00", "11:00", "12:00"]


@pytest.mark.asyncio
async def test_update_appointment_status(client: AsyncClient, appointment_data: dict):
    """Test confirming an appointment."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.put(f"/appointments/{appointment_id}", json={"status": "confirmed"})

    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"


@pytest.mark.asyncio
async def test_status_changes_have_no_transition_graph(
    client: AsyncClient, appointment_data: dict
):
    """Test that any listed status may follow any other."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    for status in ("cancelled", "confirmed", "completed", "pending"):
        response = await client.put(f"/appointments/{appointment_id}", json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status


@pytest.mark.asyncio
async def test_reschedule_to_free_slot(client: AsyncClient, appointment_data: dict):
    """Test moving an appointment to an open slot."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.put(
        f"/appointments/{appointment_id}", json={"date": "2025-06-02", "time": "14:30"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2025-06-02"
    assert data["time"] == "14:30"


@pytest.mark.asyncio
async def test_reschedule_into_taken_slot(client: AsyncClient, appointment_data: dict):
    """Test that moving into another appointment's slot is a conflict."""
    await client.post("/appointments", json=appointment_data)
    other = await client.post("/appointments", json={**appointment_data, "time": "10:00"})
    other_id = other.json()["_id"]

    response = await client.put(f"/appointments/{other_id}", json={"time": "09:00"})

    assert response.status_code == 400
    assert response.json()["message"] == "This time slot is already booked"

    unchanged = await client.get(f"/appointments/{other_id}")
    assert unchanged.json()["time"] == "10:00"


@pytest.mark.asyncio
async def test_reschedule_to_own_slot(client: AsyncClient, appointment_data: dict):
    """Test that an appointment does not conflict with itself."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.put(
        f"/appointments/{appointment_id}",
        json={"date": appointment_data["date"], "time": appointment_data["time"]},
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_trims_patient_name(client: AsyncClient, appointment_data: dict):
    """Test that an updated patient name is trimmed like on booking."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.put(f"/appointments/{appointment_id}", json={"patientName": "  Bob  "})

    assert response.status_code == 200
    assert response.json()["patientName"] == "Bob"


@pytest.mark.asyncio
async def test_update_rejects_blank_patient_name(client: AsyncClient, appointment_data: dict):
    """Test that a whitespace-only patient name is rejected on update."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.put(f"/appointments/{appointment_id}", json={"patientName": "   "})

    assert response.status_code == 422
    unchanged = await client.get(f"/appointments/{appointment_id}")
    assert unchanged.json()["patientName"] == "Asha Rao"


def _booking(doctor_id, time: str = "09:00") -> AppointmentCreate:
    return AppointmentCreate(
        doctor_id=doctor_id,
        patient_name="Asha Rao",
        patient_email="asha@example.com",
        date="2025-06-01",
        time=time,
    )


@pytest.fixture
def unchecked_service(db_session, monkeypatch) -> AppointmentService:
    """Service whose pre-write slot check always passes, leaving only the unique index."""
    service = AppointmentService(db_session)

    async def skip_slot_check(*args, **kwargs) -> None:
        return None

    monkeypatch.setattr(service, "_ensure_slot_free", skip_slot_check)
    return service


@pytest.mark.asyncio
async def test_unique_index_rejects_concurrent_booking(unchecked_service: AppointmentService):
    """Test that a booking slipping past the slot check still conflicts."""
    doctor_id = uuid4()
    await unchecked_service.create_appointment(_booking(doctor_id))

    with pytest.raises(SlotConflictException):
        await unchecked_service.create_appointment(_booking(doctor_id))

    assert len(await unchecked_service.list_appointments()) == 1


@pytest.mark.asyncio
async def test_unique_index_rejects_concurrent_revive(unchecked_service: AppointmentService):
    """Test that reviving into a slot taken meanwhile conflicts at the database."""
    doctor_id = uuid4()
    first = await unchecked_service.create_appointment(_booking(doctor_id))
    await unchecked_service.update_appointment(first["id"], AppointmentUpdate(status="cancelled"))
    await unchecked_service.create_appointment(_booking(doctor_id))

    with pytest.raises(SlotConflictException):
        await unchecked_service.update_appointment(
            first["id"], AppointmentUpdate(status="confirmed")
        )

    refreshed = await unchecked_service.get_appointment(first["id"])
    assert refreshed["status"] == "cancelled"


@pytest.mark.asyncio
async def test_unique_index_rejects_concurrent_reschedule(unchecked_service: AppointmentService):
    """Test that rescheduling into a slot taken meanwhile conflicts at the database."""
    doctor_id = uuid4()
    await unchecked_service.create_appointment(_booking(doctor_id, time="09:00"))
    other = await unchecked_service.create_appointment(_booking(doctor_id, time="10:00"))

    with pytest.raises(SlotConflictException):
        await unchecked_service.update_appointment(other["id"], AppointmentUpdate(time="09:00"))

    refreshed = await unchecked_service.get_appointment(other["id"])
    assert refreshed["time"] == "10:00"


@pytest.mark.asyncio
async def test_update_not_found(client: AsyncClient):
    """Test 404 when updating an unknown appointment."""
    response = await client.put(f"/appointments/{uuid4()}", json={"status": "confirmed"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_appointment(client: AsyncClient, appointment_data: dict):
    """Test hard-deleting an appointment."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    response = await client.delete(f"/appointments/{appointment_id}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Appointment deleted successfully"}

    get_response = await client.get(f"/appointments/{appointment_id}")
    assert get_response.status_code == 404

    again = await client.delete(f"/appointments/{appointment_id}")
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_doctor_summary_disappears_with_doctor(
    client: AsyncClient, appointment_data: dict, doctor: dict
):
    """Test that appointments survive their doctor, without the summary."""
    create_response = await client.post("/appointments", json=appointment_data)
    appointment_id = create_response.json()["_id"]

    await client.delete(f"/doctors/{doctor['_id']}")

    response = await client.get(f"/appointments/{appointment_id}")
    assert response.status_code == 200
    assert response.json()["doctor"] is None
    assert response.json()["doctorId"] == doctor["_id"]


@pytest.mark.asyncio
async def test_complete_elapsed_endpoint(client: AsyncClient, appointment_data: dict):
    """Test that only confirmed appointments in the past are completed."""
    past_confirmed = await client.post(
        "/appointments",
        json={**appointment_data, "date": "2020-01-01", "status": "confirmed"},
    )
    past_pending = await client.post(
        "/appointments", json={**appointment_data, "date": "2020-01-02"}
    )
    future_confirmed = await client.post(
        "/appointments",
        json={**appointment_data, "date": "2999-01-01", "status": "confirmed"},
    )
    unparseable = await client.post(
        "/appointments",
        json={**appointment_data, "date": "next monday", "status": "confirmed"},
    )

    response = await client.post("/appointments/complete-elapsed")

    assert response.status_code == 200
    assert response.json() == {"completed": 1}

    statuses = {}
    for created in (past_confirmed, past_pending, future_confirmed, unparseable):
        appointment_id = created.json()["_id"]
        statuses[appointment_id] = (await client.get(f"/appointments/{appointment_id}")).json()[
            "status"
        ]

    assert statuses[past_confirmed.json()["_id"]] == "completed"
    assert statuses[past_pending.json()["_id"]] == "pending"
    assert statuses[future_confirmed.json()["_id"]] == "confirmed"
    assert statuses[unparseable.json()["_id"]] == "confirmed"


@pytest.mark.asyncio
async def test_complete_elapsed_service_uses_reference_time(db_session):
    """Test the completion sweep against an explicit clock."""
    service = AppointmentService(db_session)
    doctor_id = uuid4()
    created = await service.create_appointment(
        AppointmentCreate(
            doctor_id=doctor_id,
            patient_name="Asha Rao",
            patient_email="asha@example.com",
            date="2025-06-01",
            time="09:00",
            status="confirmed",
        )
    )

    assert await service.complete_elapsed(now=datetime(2025, 6, 1, 8, 59)) == 0
    assert await service.complete_elapsed(now=datetime(2025, 6, 1, 9, 1)) == 1

    refreshed = await service.get_appointment(created["id"])
    assert refreshed["status"] == "completed"


@pytest.mark.parametrize(
    ("date", "time", "expected"),
    [
        ("2025-06-01", "09:00", datetime(2025, 6, 1, 9, 0)),
        ("2025-06-01", "09:00:30", datetime(2025, 6, 1, 9, 0, 30)),
        ("2025-06-01", "9am", None),
        ("01/06/2025", "09:00", None),
    ],
)
def test_parse_slot(date: str, time: str, expected: datetime | None):
    """Test parsing of stored slot strings."""
    assert parse_slot(date, time) == expected


@pytest.mark.asyncio
async def test_end_to_end_booking_flow(client: AsyncClient):
    """Create a doctor, book, double-book, confirm, then delete the doctor."""
    doctor_response = await client.post(
        "/doctors",
        data={
            "name": "Dr. Singh",
            "speciality": "Cardiology",
            "description": "Cardiologist",
        },
    )
    assert doctor_response.status_code == 201
    doctor_id = doctor_response.json()["_id"]

    booking = {
        "doctorId": doctor_id,
        "patientName": "Asha Rao",
        "patientEmail": "asha@example.com",
        "date": "2025-06-01",
        "time": "09:00",
    }
    first = await client.post("/appointments", json=booking)
    assert first.status_code == 201
    assert first.json()["status"] == "pending"

    second = await client.post("/appointments", json=booking)
    assert second.status_code == 400

    confirm = await client.put(f"/appointments/{first.json()['_id']}", json={"status": "confirmed"})
    assert confirm.status_code == 200
    assert confirm.json()["status"] == "confirmed"

    delete_response = await client.delete(f"/doctors/{doctor_id}")
    assert delete_response.status_code == 200

    get_response = await client.get(f"/doctors/{doctor_id}")
    assert get_response.status_code == 404
