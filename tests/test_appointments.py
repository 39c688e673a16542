"""Tests for appointment endpoints."""

from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

from conftest import RecordingSink, at

BASE_URL = "/api/v1/appointments"


def booking_payload(patient_id: UUID, doctor_id: UUID, **overrides) -> dict:
    start = overrides.pop("start", at(days=7, hours=2))
    end = overrides.pop("end", start + timedelta(minutes=30))
    return {
        "patient_id": str(patient_id),
        "doctor_id": str(doctor_id),
        "start_utc": start.isoformat(),
        "end_utc": end.isoformat(),
        **overrides,
    }


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_ping(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping")
    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_detailed_health_reports_schema_and_rules(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["schema_ready"] is True
    assert data["missing_tables"] == []
    assert data["scheduling_rules"]["min_booking_lead_minutes"] == 15
    assert data["scheduling_rules"]["reschedule_cutoff_minutes"] == 24 * 60


@pytest.mark.asyncio
async def test_book_appointment(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID, event_sink: RecordingSink
) -> None:
    """Test booking an appointment."""
    response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id, notes="First visit")
    )

    assert response.status_code == 201
    data = response.json()
    assert "id" in data
    assert data["start_utc"].startswith("2030-01-14T10:00:00")
    assert len(event_sink.events) == 1


@pytest.mark.asyncio
async def test_get_appointment(client: AsyncClient, patient_id: UUID, doctor_id: UUID) -> None:
    """Test getting a specific appointment."""
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id, notes="First visit")
    )
    appointment_id = create_response.json()["id"]

    response = await client.get(f"{BASE_URL}/{appointment_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == appointment_id
    assert data["status"] == "scheduled"
    assert data["notes"] == "First visit"
    assert data["version"] == 1


@pytest.mark.asyncio
async def test_get_unknown_appointment_returns_404(client: AsyncClient) -> None:
    response = await client.get(f"{BASE_URL}/{uuid4()}")

    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "Appointment.NotFound"
    assert data["error"] == "NotFoundException"


@pytest.mark.asyncio
async def test_overlapping_booking_returns_409(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    await client.post(f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id))

    response = await client.post(
        f"{BASE_URL}/",
        json=booking_payload(patient_id, doctor_id, start=at(days=7, hours=2, minutes=15)),
    )

    assert response.status_code == 409
    assert response.json()["code"] == "Appointment.Conflict"


@pytest.mark.asyncio
async def test_booking_validation_error_returns_400(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    start = at(days=7)
    response = await client.post(
        f"{BASE_URL}/",
        json=booking_payload(patient_id, doctor_id, start=start, end=start + timedelta(minutes=5)),
    )

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "Appointment.ValidationFailed"
    assert "10 minutes" in data["message"]


@pytest.mark.asyncio
async def test_naive_datetime_returns_400(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    payload = booking_payload(patient_id, doctor_id)
    payload["start_utc"] = at(days=7).replace(tzinfo=None).isoformat()

    response = await client.post(f"{BASE_URL}/", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "DateTime must be in UTC"


@pytest.mark.asyncio
async def test_malformed_body_returns_422(client: AsyncClient) -> None:
    response = await client.post(f"{BASE_URL}/", json={"patient_id": "not-a-uuid"})

    assert response.status_code == 422
    assert response.json()["code"] == "Request.Malformed"


@pytest.mark.asyncio
async def test_unknown_doctor_returns_404(client: AsyncClient, patient_id: UUID) -> None:
    response = await client.post(f"{BASE_URL}/", json=booking_payload(patient_id, uuid4()))

    assert response.status_code == 404
    assert response.json()["code"] == "Appointment.DoctorNotFound"


@pytest.mark.asyncio
async def test_reschedule_appointment(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id)
    )
    appointment_id = create_response.json()["id"]
    new_start = at(days=8, hours=1)

    response = await client.post(
        f"{BASE_URL}/{appointment_id}/reschedule",
        json={
            "new_start_utc": new_start.isoformat(),
            "new_end_utc": (new_start + timedelta(hours=1)).isoformat(),
            "reason": "Clinic closed",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["start_utc"].startswith("2030-01-15T09:00:00")
    assert data["previous_start_utc"].startswith("2030-01-14T10:00:00")

    stored = (await client.get(f"{BASE_URL}/{appointment_id}")).json()
    assert stored["status"] == "rescheduled"
    assert stored["notes"] == "Clinic closed"


@pytest.mark.asyncio
async def test_reschedule_inside_window_returns_400(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id, start=at(hours=23))
    )
    appointment_id = create_response.json()["id"]
    new_start = at(days=7)

    response = await client.post(
        f"{BASE_URL}/{appointment_id}/reschedule",
        json={
            "new_start_utc": new_start.isoformat(),
            "new_end_utc": (new_start + timedelta(minutes=30)).isoformat(),
        },
    )

    assert response.status_code == 400
    assert response.json()["code"] == "Appointment.RescheduleWindowClosed"


@pytest.mark.asyncio
async def test_cancel_appointment_twice(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id)
    )
    appointment_id = create_response.json()["id"]

    empty = await client.post(f"{BASE_URL}/{appointment_id}/cancel", json={"reason": ""})
    assert empty.status_code == 400

    first = await client.post(
        f"{BASE_URL}/{appointment_id}/cancel", json={"reason": "Patient request"}
    )
    second = await client.post(
        f"{BASE_URL}/{appointment_id}/cancel", json={"reason": "Another reason"}
    )

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["status"] == "cancelled"
    assert second.json() == first.json()


@pytest.mark.asyncio
async def test_complete_appointment(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id)
    )
    appointment_id = create_response.json()["id"]

    response = await client.post(
        f"{BASE_URL}/{appointment_id}/complete", json={"notes": "Follow up in 6 months"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["notes"] == "Follow up in 6 months"


@pytest.mark.asyncio
async def test_complete_without_body(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id)
    )
    appointment_id = create_response.json()["id"]

    response = await client.post(f"{BASE_URL}/{appointment_id}/complete")

    assert response.status_code == 200
    assert response.json()["notes"] is None


@pytest.mark.asyncio
async def test_complete_cancelled_returns_400(
    client: AsyncClient, patient_id: UUID, doctor_id: UUID
) -> None:
    create_response = await client.post(
        f"{BASE_URL}/", json=booking_payload(patient_id, doctor_id)
    )
    appointment_id = create_response.json()["id"]
    await client.post(f"{BASE_URL}/{appointment_id}/cancel", json={"reason": "Patient request"})

    response = await client.post(f"{BASE_URL}/{appointment_id}/complete", json={})

    assert response.status_code == 400
    assert response.json()["code"] == "Appointment.CannotComplete"


@pytest.mark.asyncio
async def test_complete_unknown_returns_404(client: AsyncClient) -> None:
    response = await client.post(f"{BASE_URL}/{uuid4()}/complete", json={})

    assert response.status_code == 404
    assert response.json()["code"] == "Appointment.NotFound"
