"""Scheduling domain: the appointment aggregate, its events and policy."""

from app.domain.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from app.domain.events import (
    AppointmentBookedEvent,
    AppointmentCancelledEvent,
    AppointmentCompletedEvent,
    AppointmentRescheduledEvent,
    DomainEvent,
)
from app.domain.exceptions import AppointmentArgumentError, AppointmentOperationError
from app.domain.policies import SchedulingPolicy

__all__ = [
    "ACTIVE_STATUSES",
    "Appointment",
    "AppointmentArgumentError",
    "AppointmentBookedEvent",
    "AppointmentCancelledEvent",
    "AppointmentCompletedEvent",
    "AppointmentOperationError",
    "AppointmentRescheduledEvent",
    "AppointmentStatus",
    "DomainEvent",
    "SchedulingPolicy",
]
