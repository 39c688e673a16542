"""Appointment schemas for requests and command results."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.appointment import Appointment, AppointmentStatus


class BookAppointmentRequest(BaseModel):
    """Schema for booking a new appointment."""

    patient_id: UUID
    doctor_id: UUID
    start_utc: datetime
    end_utc: datetime
    notes: str | None = None


class RescheduleAppointmentRequest(BaseModel):
    """Schema for moving an appointment to a new interval."""

    new_start_utc: datetime
    new_end_utc: datetime
    reason: str | None = None


class CancelAppointmentRequest(BaseModel):
    """Schema for cancelling an appointment."""

    reason: str = Field(..., description="Why the appointment is cancelled")


class CompleteAppointmentRequest(BaseModel):
    """Schema for completing an appointment."""

    notes: str | None = None


class BookAppointmentResult(BaseModel):
    """Result of a successful booking."""

    id: UUID
    start_utc: datetime
    end_utc: datetime


class RescheduleAppointmentResult(BaseModel):
    """Result of a successful reschedule."""

    id: UUID
    start_utc: datetime
    end_utc: datetime
    previous_start_utc: datetime
    previous_end_utc: datetime


class CancelAppointmentResult(BaseModel):
    """Result of a successful (or repeated) cancellation."""

    id: UUID
    status: AppointmentStatus
    cancelled_utc: datetime
    cancellation_reason: str


class CompleteAppointmentResult(BaseModel):
    """Result of a successful (or repeated) completion."""

    id: UUID
    status: AppointmentStatus
    completed_utc: datetime
    notes: str | None


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    start_utc: datetime
    end_utc: datetime
    status: AppointmentStatus
    notes: str | None = None
    completed_utc: datetime | None = None
    cancelled_utc: datetime | None = None
    cancellation_reason: str | None = None
    version: int

    @classmethod
    def from_aggregate(cls, appointment: Appointment) -> "AppointmentResponse":
        """Project an aggregate into the response shape."""
        return cls(**appointment.to_state(), version=appointment.version)
