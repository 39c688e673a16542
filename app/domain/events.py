"""Domain events emitted by the appointment aggregate."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def name(self) -> str:
        """Event name used in logs."""
        return type(self).__name__


@dataclass(frozen=True, kw_only=True)
class AppointmentBookedEvent(DomainEvent):
    """An appointment was booked.

    ``appointment_id`` is None until the appointment is persisted.
    """

    appointment_id: UUID | None
    patient_id: UUID
    doctor_id: UUID
    start_utc: datetime
    end_utc: datetime


@dataclass(frozen=True, kw_only=True)
class AppointmentRescheduledEvent(DomainEvent):
    """An appointment was moved to a new interval."""

    appointment_id: UUID | None
    previous_start_utc: datetime
    previous_end_utc: datetime
    new_start_utc: datetime
    new_end_utc: datetime


@dataclass(frozen=True, kw_only=True)
class AppointmentCompletedEvent(DomainEvent):
    """An appointment was completed."""

    appointment_id: UUID | None
    patient_id: UUID
    doctor_id: UUID
    completed_utc: datetime
    notes: str | None


@dataclass(frozen=True, kw_only=True)
class AppointmentCancelledEvent(DomainEvent):
    """An appointment was cancelled.

    Hook for cancellation-fee handling, which is not enforced here.
    """

    appointment_id: UUID | None
    patient_id: UUID
    doctor_id: UUID
    cancelled_utc: datetime
    cancellation_reason: str
