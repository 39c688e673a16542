"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from app.dependencies import AppointmentServiceDep
from app.schemas.appointments import (
    AppointmentResponse,
    BookAppointmentRequest,
    BookAppointmentResult,
    CancelAppointmentRequest,
    CancelAppointmentResult,
    CompleteAppointmentRequest,
    CompleteAppointmentResult,
    RescheduleAppointmentRequest,
    RescheduleAppointmentResult,
)

router = APIRouter()


@router.post(
    "/",
    response_model=BookAppointmentResult,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Book appointment",
)
async def book_appointment(
    data: BookAppointmentRequest,
    service: AppointmentServiceDep,
) -> BookAppointmentResult:
    """
    Book an appointment for a patient with a doctor.

    Args:
        data: Booking request
        service: Appointment service

    Returns:
        ID and interval of the new appointment
    """
    return await service.book(
        patient_id=data.patient_id,
        doctor_id=data.doctor_id,
        start_utc=data.start_utc,
        end_utc=data.end_utc,
        notes=data.notes,
    )


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Get appointment details.

    Args:
        appointment_id: Appointment ID
        service: Appointment service

    Returns:
        Appointment state and version
    """
    return await service.get_appointment(appointment_id)


@router.post(
    "/{appointment_id}/reschedule",
    response_model=RescheduleAppointmentResult,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: RescheduleAppointmentRequest,
    service: AppointmentServiceDep,
) -> RescheduleAppointmentResult:
    """
    Move an appointment to a new interval.

    Args:
        appointment_id: Appointment ID
        data: New interval and optional reason
        service: Appointment service

    Returns:
        New and previous intervals
    """
    return await service.reschedule(
        appointment_id,
        new_start_utc=data.new_start_utc,
        new_end_utc=data.new_end_utc,
        reason=data.reason,
    )


@router.post(
    "/{appointment_id}/cancel",
    response_model=CancelAppointmentResult,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    data: CancelAppointmentRequest,
    service: AppointmentServiceDep,
) -> CancelAppointmentResult:
    """Cancel an appointment. Cancelling twice returns the first cancellation."""
    return await service.cancel(appointment_id, data.reason)


@router.post(
    "/{appointment_id}/complete",
    response_model=CompleteAppointmentResult,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Complete appointment",
)
async def complete_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
    data: CompleteAppointmentRequest | None = None,
) -> CompleteAppointmentResult:
    """Mark an appointment as completed with optional visit notes."""
    return await service.complete(appointment_id, data.notes if data else None)
