"""Notification hooks for appointment lifecycle events.

Delivery (push, email, SMS) is not wired up; each handler records the
notification it would send so a delivery channel can subscribe later.
"""

import structlog

from app.domain.events import (
    AppointmentBookedEvent,
    AppointmentCancelledEvent,
    AppointmentCompletedEvent,
    AppointmentRescheduledEvent,
)
from app.services.event_dispatcher import DomainEventDispatcher

logger = structlog.get_logger(__name__)


class NotificationService:
    """Handlers that notify patients and doctors about appointment changes."""

    @staticmethod
    async def on_appointment_booked(event: AppointmentBookedEvent) -> None:
        """Queue a booking confirmation for the patient and the doctor."""
        logger.info(
            "appointment_booked_notification_queued",
            appointment_id=str(event.appointment_id),
            patient_id=str(event.patient_id),
            doctor_id=str(event.doctor_id),
            start_utc=event.start_utc.isoformat(),
        )

    @staticmethod
    async def on_appointment_rescheduled(event: AppointmentRescheduledEvent) -> None:
        """Queue reschedule notices with the old and new times."""
        logger.info(
            "appointment_rescheduled_notification_queued",
            appointment_id=str(event.appointment_id),
            previous_start_utc=event.previous_start_utc.isoformat(),
            previous_end_utc=event.previous_end_utc.isoformat(),
            new_start_utc=event.new_start_utc.isoformat(),
            new_end_utc=event.new_end_utc.isoformat(),
        )

    @staticmethod
    async def on_appointment_completed(event: AppointmentCompletedEvent) -> None:
        """Queue a visit summary for the patient."""
        logger.info(
            "appointment_completed_notification_queued",
            appointment_id=str(event.appointment_id),
            patient_id=str(event.patient_id),
            completed_utc=event.completed_utc.isoformat(),
        )

    @staticmethod
    async def on_appointment_cancelled(event: AppointmentCancelledEvent) -> None:
        """Queue cancellation notices; cancellation fees would hook in here."""
        logger.info(
            "appointment_cancelled_notification_queued",
            appointment_id=str(event.appointment_id),
            patient_id=str(event.patient_id),
            doctor_id=str(event.doctor_id),
            cancelled_utc=event.cancelled_utc.isoformat(),
            reason=event.cancellation_reason,
        )

    @classmethod
    def register(cls, dispatcher: DomainEventDispatcher) -> DomainEventDispatcher:
        """Subscribe all notification handlers to a dispatcher."""
        dispatcher.subscribe(AppointmentBookedEvent, cls.on_appointment_booked)
        dispatcher.subscribe(AppointmentRescheduledEvent, cls.on_appointment_rescheduled)
        dispatcher.subscribe(AppointmentCompletedEvent, cls.on_appointment_completed)
        dispatcher.subscribe(AppointmentCancelledEvent, cls.on_appointment_cancelled)
        return dispatcher


def create_event_dispatcher() -> DomainEventDispatcher:
    """Dispatcher with the default notification handlers subscribed."""
    return NotificationService.register(DomainEventDispatcher())
