"""Appointment aggregate and its state machine.

The aggregate is the only way to mutate an appointment. It enforces the
invariants that do not depend on the current time (UTC instants, interval
ordering, terminal-state exclusivity, text limits) and records domain events
that the caller drains after a successful commit.

Time-dependent policy (booking lead time, reschedule window, duration bounds)
lives in the service layer, which also has to reject rescheduling of
terminal appointments before calling :meth:`Appointment.reschedule`.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from app.domain.events import (
    AppointmentBookedEvent,
    AppointmentCancelledEvent,
    AppointmentCompletedEvent,
    AppointmentRescheduledEvent,
    DomainEvent,
)
from app.domain.exceptions import AppointmentArgumentError, AppointmentOperationError
from app.domain.policies import SchedulingPolicy


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed."""
        return self in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)


# Statuses that occupy a doctor's calendar
ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.RESCHEDULED)


def is_utc(value: datetime) -> bool:
    """Check that a datetime is timezone-aware with a zero UTC offset."""
    return value.tzinfo is not None and value.utcoffset() == timedelta(0)


def _require_utc(value: datetime, param_name: str) -> None:
    if not isinstance(value, datetime) or not is_utc(value):
        raise AppointmentArgumentError("DateTime must be in UTC", param_name)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class Appointment:
    """Appointment aggregate root."""

    def __init__(
        self,
        *,
        id: UUID | None,
        patient_id: UUID,
        doctor_id: UUID,
        start_utc: datetime,
        end_utc: datetime,
        status: AppointmentStatus,
        notes: str | None = None,
        completed_utc: datetime | None = None,
        cancelled_utc: datetime | None = None,
        cancellation_reason: str | None = None,
        version: int = 0,
    ):
        """Build an aggregate from known state. Use :meth:`schedule` to create one."""
        self._id = id
        self._patient_id = patient_id
        self._doctor_id = doctor_id
        self._start_utc = start_utc
        self._end_utc = end_utc
        self._status = AppointmentStatus(status)
        self._notes = notes
        self._completed_utc = completed_utc
        self._cancelled_utc = cancelled_utc
        self._cancellation_reason = cancellation_reason
        self.version = version
        self._events: list[DomainEvent] = []

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def schedule(
        cls,
        patient_id: UUID,
        doctor_id: UUID,
        start_utc: datetime,
        end_utc: datetime,
        notes: str | None = None,
        occurred_at: datetime | None = None,
    ) -> "Appointment":
        """
        Create a new appointment in the scheduled state.

        Args:
            patient_id: Patient the appointment is for
            doctor_id: Doctor whose calendar is booked
            start_utc: Start instant, must be UTC
            end_utc: End instant, must be UTC and after ``start_utc``
            notes: Optional notes, trimmed; blank becomes None
            occurred_at: Booking instant stamped on the event, defaults to now

        Returns:
            New appointment with a pending booked event

        Raises:
            AppointmentArgumentError: If times are not UTC, out of order,
                or notes are too long
        """
        _require_utc(start_utc, "start_utc")
        _require_utc(end_utc, "end_utc")

        if start_utc >= end_utc:
            raise AppointmentArgumentError("Start time must be before end time", "start_utc")

        appointment = cls(
            id=None,
            patient_id=patient_id,
            doctor_id=doctor_id,
            start_utc=start_utc,
            end_utc=end_utc,
            status=AppointmentStatus.SCHEDULED,
        )
        appointment.update_notes(notes)

        appointment._record(
            AppointmentBookedEvent(
                appointment_id=None,
                patient_id=patient_id,
                doctor_id=doctor_id,
                start_utc=start_utc,
                end_utc=end_utc,
            ),
            occurred_at,
        )
        return appointment

    @classmethod
    def rehydrate(cls, state: dict[str, Any]) -> "Appointment":
        """Rebuild an aggregate from stored state without emitting events."""
        return cls(
            id=state["id"],
            patient_id=state["patient_id"],
            doctor_id=state["doctor_id"],
            start_utc=state["start_utc"],
            end_utc=state["end_utc"],
            status=AppointmentStatus(state["status"]),
            notes=state.get("notes"),
            completed_utc=state.get("completed_utc"),
            cancelled_utc=state.get("cancelled_utc"),
            cancellation_reason=state.get("cancellation_reason"),
            version=state.get("version", 0),
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def id(self) -> UUID | None:
        return self._id

    @property
    def patient_id(self) -> UUID:
        return self._patient_id

    @property
    def doctor_id(self) -> UUID:
        return self._doctor_id

    @property
    def start_utc(self) -> datetime:
        return self._start_utc

    @property
    def end_utc(self) -> datetime:
        return self._end_utc

    @property
    def status(self) -> AppointmentStatus:
        return self._status

    @property
    def notes(self) -> str | None:
        return self._notes

    @property
    def completed_utc(self) -> datetime | None:
        return self._completed_utc

    @property
    def cancelled_utc(self) -> datetime | None:
        return self._cancelled_utc

    @property
    def cancellation_reason(self) -> str | None:
        return self._cancellation_reason

    @property
    def duration(self) -> timedelta:
        return self._end_utc - self._start_utc

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._events)

    def to_state(self) -> dict[str, Any]:
        """Snapshot of the persistent state (events excluded)."""
        return {
            "id": self._id,
            "patient_id": self._patient_id,
            "doctor_id": self._doctor_id,
            "start_utc": self._start_utc,
            "end_utc": self._end_utc,
            "status": self._status.value,
            "notes": self._notes,
            "completed_utc": self._completed_utc,
            "cancelled_utc": self._cancelled_utc,
            "cancellation_reason": self._cancellation_reason,
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def reschedule(
        self,
        new_start_utc: datetime,
        new_end_utc: datetime,
        reason: str | None = None,
        occurred_at: datetime | None = None,
    ) -> None:
        """
        Move the appointment to a new interval.

        Callers must reject terminal appointments and apply the time-window
        policy first; this method only guards the interval itself.

        Args:
            new_start_utc: New start instant, must be UTC
            new_end_utc: New end instant, must be UTC and after the start
            reason: Optional reason, appended to the notes
            occurred_at: Instant stamped on the event, defaults to now

        Raises:
            AppointmentArgumentError: If the interval is invalid or the
                resulting notes would be too long
        """
        _require_utc(new_start_utc, "new_start_utc")
        _require_utc(new_end_utc, "new_end_utc")

        if new_start_utc >= new_end_utc:
            raise AppointmentArgumentError(
                "New start time must be before new end time", "new_start_utc"
            )

        notes = self._notes
        if not _is_blank(reason):
            notes = reason if _is_blank(notes) else f"{notes}; {reason}"
            if len(notes) > SchedulingPolicy.MAX_NOTES_LENGTH:
                raise AppointmentArgumentError(
                    f"Notes cannot exceed {SchedulingPolicy.MAX_NOTES_LENGTH} characters",
                    "reason",
                )

        previous_start_utc = self._start_utc
        previous_end_utc = self._end_utc

        self._start_utc = new_start_utc
        self._end_utc = new_end_utc
        self._status = AppointmentStatus.RESCHEDULED
        self._notes = notes

        self._record(
            AppointmentRescheduledEvent(
                appointment_id=self._id,
                previous_start_utc=previous_start_utc,
                previous_end_utc=previous_end_utc,
                new_start_utc=new_start_utc,
                new_end_utc=new_end_utc,
            ),
            occurred_at,
        )

    def complete(self, notes: str | None = None, completed_at: datetime | None = None) -> None:
        """
        Mark the appointment as completed.

        A repeat call on a completed appointment is a no-op and keeps the
        first call's timestamp and notes.

        Args:
            notes: Completion notes, replace the current notes
            completed_at: Completion instant, defaults to the current UTC time

        Raises:
            AppointmentOperationError: If the appointment is cancelled
            AppointmentArgumentError: If notes are too long or the
                timestamp is not UTC
        """
        if self._status == AppointmentStatus.COMPLETED:
            return

        if self._status == AppointmentStatus.CANCELLED:
            raise AppointmentOperationError("Cannot complete a cancelled appointment")

        if notes is not None and len(notes) > SchedulingPolicy.MAX_NOTES_LENGTH:
            raise AppointmentArgumentError(
                f"Notes cannot exceed {SchedulingPolicy.MAX_NOTES_LENGTH} characters", "notes"
            )

        timestamp = completed_at or datetime.now(UTC)
        _require_utc(timestamp, "completed_at")

        self._status = AppointmentStatus.COMPLETED
        self._completed_utc = timestamp
        self._notes = notes

        self._record(
            AppointmentCompletedEvent(
                appointment_id=self._id,
                patient_id=self._patient_id,
                doctor_id=self._doctor_id,
                completed_utc=timestamp,
                notes=notes,
            ),
            timestamp,
        )

    def cancel(self, reason: str, cancelled_at: datetime | None = None) -> None:
        """
        Cancel the appointment.

        A repeat call on a cancelled appointment is a no-op and keeps the
        original reason and timestamp.

        Args:
            reason: Required cancellation reason
            cancelled_at: Cancellation instant, defaults to the current UTC time

        Raises:
            AppointmentOperationError: If the appointment is completed
            AppointmentArgumentError: If the reason is blank or too long,
                or the timestamp is not UTC
        """
        if self._status == AppointmentStatus.CANCELLED:
            return

        if self._status == AppointmentStatus.COMPLETED:
            raise AppointmentOperationError("Cannot cancel a completed appointment")

        if _is_blank(reason):
            raise AppointmentArgumentError("Cancellation reason is required", "reason")

        if len(reason) > SchedulingPolicy.MAX_CANCELLATION_REASON_LENGTH:
            raise AppointmentArgumentError(
                "Cancellation reason cannot exceed "
                f"{SchedulingPolicy.MAX_CANCELLATION_REASON_LENGTH} characters",
                "reason",
            )

        timestamp = cancelled_at or datetime.now(UTC)
        _require_utc(timestamp, "cancelled_at")

        self._status = AppointmentStatus.CANCELLED
        self._cancelled_utc = timestamp
        self._cancellation_reason = reason

        self._record(
            AppointmentCancelledEvent(
                appointment_id=self._id,
                patient_id=self._patient_id,
                doctor_id=self._doctor_id,
                cancelled_utc=timestamp,
                cancellation_reason=reason,
            ),
            timestamp,
        )

    def update_notes(self, new_notes: str | None) -> None:
        """Replace the notes; blank clears them."""
        if new_notes is not None and len(new_notes) > SchedulingPolicy.MAX_NOTES_LENGTH:
            raise AppointmentArgumentError(
                f"Notes cannot exceed {SchedulingPolicy.MAX_NOTES_LENGTH} characters", "notes"
            )

        self._notes = None if _is_blank(new_notes) else new_notes.strip()

    # ------------------------------------------------------------------
    # Persistence support
    # ------------------------------------------------------------------

    def assign_id(self, appointment_id: UUID) -> None:
        """Stamp the persistence id on the aggregate and its pending events."""
        self._id = appointment_id
        self._events = [
            replace(event, appointment_id=appointment_id)
            if getattr(event, "appointment_id", None) is None
            else event
            for event in self._events
        ]

    def pull_events(self) -> list[DomainEvent]:
        """Return pending events and clear the buffer."""
        events, self._events = self._events, []
        return events

    def _record(self, event: DomainEvent, occurred_at: datetime | None = None) -> None:
        if occurred_at is not None:
            event = replace(event, occurred_at=occurred_at)
        self._events.append(event)

    def __repr__(self) -> str:
        return (
            f"<Appointment id={self._id} doctor_id={self._doctor_id} "
            f"status={self._status.value} start={self._start_utc.isoformat()}>"
        )
