"""Appointment service: the book, reschedule, cancel and complete commands."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock
from app.core.exceptions import (
    ConcurrencyConflictError,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from app.domain.appointment import Appointment, AppointmentStatus
from app.domain.exceptions import AppointmentArgumentError, AppointmentOperationError
from app.domain.policies import SchedulingPolicy
from app.repositories.appointment_repository import AppointmentRepository
from app.schemas.appointments import (
    AppointmentResponse,
    BookAppointmentResult,
    CancelAppointmentResult,
    CompleteAppointmentResult,
    RescheduleAppointmentResult,
)
from app.services.conflict_detector import ConflictDetector
from app.services.event_dispatcher import EventSink
from app.services.notification_service import create_event_dispatcher
from app.services.scheduling_validators import (
    VALIDATION_FAILED,
    validate_booking,
    validate_reschedule,
)

logger = structlog.get_logger(__name__)


def _to_utc(value: datetime) -> datetime:
    """Normalize offset-aware datetimes to UTC; naive values are left for the domain to reject."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC)


class AppointmentService:
    """
    Command handlers for the appointment lifecycle.

    Each command is one unit of work on the injected session. Domain and
    store failures are translated here into ``NotFoundException``,
    ``ValidationException`` or ``ConflictException`` with a stable code.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock | None = None,
        event_sink: EventSink | None = None,
    ):
        """Initialize service with database session, clock and event sink."""
        self.repository = AppointmentRepository(db)
        self.conflicts = ConflictDetector(self.repository)
        self.clock = clock or SystemClock()
        self.event_sink = event_sink or create_event_dispatcher()

    async def book(
        self,
        patient_id: UUID,
        doctor_id: UUID,
        start_utc: datetime,
        end_utc: datetime,
        notes: str | None = None,
    ) -> BookAppointmentResult:
        """
        Book a new appointment.

        Args:
            patient_id: Patient ID
            doctor_id: Doctor ID
            start_utc: Start instant
            end_utc: End instant
            notes: Optional notes

        Returns:
            ID and interval of the booked appointment

        Raises:
            ValidationException: If the request breaks a scheduling rule
            NotFoundException: If the patient or doctor does not exist
            ConflictException: If the doctor is already booked in the interval
        """
        start_utc = _to_utc(start_utc)
        end_utc = _to_utc(end_utc)

        now = self.clock.now()

        validate_booking(start_utc, end_utc, notes, now)

        if not await self.repository.patient_exists(patient_id):
            raise NotFoundException(
                f"Patient with ID {patient_id} not found", code="Appointment.PatientNotFound"
            )

        if not await self.repository.doctor_exists(doctor_id):
            raise NotFoundException(
                f"Doctor with ID {doctor_id} not found", code="Appointment.DoctorNotFound"
            )

        await self.repository.lock_doctor_schedule(doctor_id)

        if await self.conflicts.has_conflict(doctor_id, start_utc, end_utc):
            raise self._overlap_conflict()

        try:
            appointment = Appointment.schedule(
                patient_id, doctor_id, start_utc, end_utc, notes, occurred_at=now
            )
        except AppointmentArgumentError as e:
            raise ValidationException(str(e), code=VALIDATION_FAILED) from e

        self.repository.add(appointment)

        try:
            await self.repository.save()
        except ConcurrencyConflictError as e:
            logger.warning("appointment_concurrent_insert", doctor_id=str(doctor_id))
            raise self._overlap_conflict() from e

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            patient_id=str(patient_id),
            doctor_id=str(doctor_id),
        )

        await self._dispatch_events(appointment)

        return BookAppointmentResult(
            id=appointment.id,
            start_utc=appointment.start_utc,
            end_utc=appointment.end_utc,
        )

    async def reschedule(
        self,
        appointment_id: UUID,
        new_start_utc: datetime,
        new_end_utc: datetime,
        reason: str | None = None,
    ) -> RescheduleAppointmentResult:
        """
        Move an appointment to a new interval.

        Args:
            appointment_id: Appointment ID
            new_start_utc: New start instant
            new_end_utc: New end instant
            reason: Optional reason, appended to the notes

        Returns:
            New and previous intervals

        Raises:
            ValidationException: If the request breaks a scheduling rule, the
                appointment is terminal, or the reschedule window has closed
            NotFoundException: If the appointment does not exist
            ConflictException: If the doctor is booked in the new interval or
                the appointment changed concurrently
        """
        new_start_utc = _to_utc(new_start_utc)
        new_end_utc = _to_utc(new_end_utc)
        now = self.clock.now()

        validate_reschedule(new_start_utc, new_end_utc, reason, now)

        appointment = await self._get_or_raise(appointment_id)

        previous_start_utc = appointment.start_utc
        previous_end_utc = appointment.end_utc

        if appointment.status == AppointmentStatus.CANCELLED:
            raise ValidationException(
                "Cannot reschedule a cancelled appointment",
                code="Appointment.CannotRescheduleCancelled",
            )

        if appointment.status == AppointmentStatus.COMPLETED:
            raise ValidationException(
                "Cannot reschedule a completed appointment",
                code="Appointment.CannotRescheduleCompleted",
            )

        if now >= appointment.start_utc - SchedulingPolicy.RESCHEDULE_CUTOFF:
            hours = int(SchedulingPolicy.RESCHEDULE_CUTOFF.total_seconds() // 3600)
            raise ValidationException(
                f"Appointments cannot be rescheduled within {hours} hours of the start time",
                code="Appointment.RescheduleWindowClosed",
            )

        await self.repository.lock_doctor_schedule(appointment.doctor_id)

        if await self.conflicts.has_conflict(
            appointment.doctor_id,
            new_start_utc,
            new_end_utc,
            exclude_appointment_id=appointment.id,
        ):
            raise self._overlap_conflict()

        try:
            appointment.reschedule(new_start_utc, new_end_utc, reason, occurred_at=now)
        except AppointmentArgumentError as e:
            raise ValidationException(str(e), code=VALIDATION_FAILED) from e

        await self._save(appointment)

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment.id),
            previous_start_utc=previous_start_utc.isoformat(),
            new_start_utc=appointment.start_utc.isoformat(),
        )

        await self._dispatch_events(appointment)

        return RescheduleAppointmentResult(
            id=appointment.id,
            start_utc=appointment.start_utc,
            end_utc=appointment.end_utc,
            previous_start_utc=previous_start_utc,
            previous_end_utc=previous_end_utc,
        )

    async def cancel(self, appointment_id: UUID, reason: str) -> CancelAppointmentResult:
        """
        Cancel an appointment. Repeating the call returns the original values.

        Args:
            appointment_id: Appointment ID
            reason: Required cancellation reason

        Returns:
            Status, timestamp and reason of the cancellation

        Raises:
            NotFoundException: If the appointment does not exist
            ValidationException: If the appointment is completed or the
                reason is invalid
            ConflictException: If the appointment changed concurrently
        """
        appointment = await self._get_or_raise(appointment_id)

        try:
            appointment.cancel(reason, cancelled_at=self.clock.now())
        except AppointmentOperationError as e:
            raise ValidationException(e.message, code="Appointment.CannotCancel") from e
        except AppointmentArgumentError as e:
            raise ValidationException(str(e), code=VALIDATION_FAILED) from e

        await self._save(appointment)
        await self._dispatch_events(appointment)

        return CancelAppointmentResult(
            id=appointment.id,
            status=appointment.status,
            cancelled_utc=appointment.cancelled_utc,
            cancellation_reason=appointment.cancellation_reason,
        )

    async def complete(
        self,
        appointment_id: UUID,
        notes: str | None = None,
    ) -> CompleteAppointmentResult:
        """
        Complete an appointment. Repeating the call returns the original values.

        Args:
            appointment_id: Appointment ID
            notes: Optional completion notes

        Returns:
            Status, timestamp and notes of the completion

        Raises:
            NotFoundException: If the appointment does not exist
            ValidationException: If the appointment is cancelled or the notes
                are too long
            ConflictException: If the appointment changed concurrently
        """
        appointment = await self._get_or_raise(appointment_id)

        try:
            appointment.complete(notes, completed_at=self.clock.now())
        except AppointmentOperationError as e:
            raise ValidationException(e.message, code="Appointment.CannotComplete") from e
        except AppointmentArgumentError as e:
            raise ValidationException(str(e), code=VALIDATION_FAILED) from e

        await self._save(appointment)
        await self._dispatch_events(appointment)

        return CompleteAppointmentResult(
            id=appointment.id,
            status=appointment.status,
            completed_utc=appointment.completed_utc,
            notes=appointment.notes,
        )

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment = await self._get_or_raise(appointment_id)
        return AppointmentResponse.from_aggregate(appointment)

    async def _get_or_raise(self, appointment_id: UUID) -> Appointment:
        appointment = await self.repository.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException(
                f"Appointment with ID {appointment_id} not found", code="Appointment.NotFound"
            )
        return appointment

    async def _save(self, appointment: Appointment) -> None:
        try:
            await self.repository.save()
        except ConcurrencyConflictError as e:
            logger.warning("appointment_concurrency_conflict", appointment_id=str(appointment.id))
            raise ConflictException(
                "The appointment was modified by another user. Please refresh and try again.",
                code="Appointment.ConcurrencyConflict",
            ) from e

    async def _dispatch_events(self, appointment: Appointment) -> None:
        for event in appointment.pull_events():
            try:
                await self.event_sink.publish(event)
            except Exception as e:
                # Already committed; sink failures are only logged
                logger.warning(
                    "domain_event_dispatch_failed",
                    event_name=event.name,
                    appointment_id=str(appointment.id),
                    error=str(e),
                )

    @staticmethod
    def _overlap_conflict() -> ConflictException:
        return ConflictException(
            "Doctor has a conflicting appointment during the requested time",
            code="Appointment.Conflict",
        )
