"""Request-level scheduling rules checked before touching the store."""

from datetime import datetime

from app.core.exceptions import ValidationException
from app.domain.appointment import is_utc
from app.domain.policies import SchedulingPolicy

VALIDATION_FAILED = "Appointment.ValidationFailed"


def _fail(message: str) -> None:
    raise ValidationException(message, code=VALIDATION_FAILED)


def _validate_interval(start_utc: datetime, end_utc: datetime, order_message: str) -> None:
    if not is_utc(start_utc) or not is_utc(end_utc):
        _fail("DateTime must be in UTC")

    if start_utc >= end_utc:
        _fail(order_message)

    minutes = int(SchedulingPolicy.MIN_DURATION.total_seconds() // 60)
    if end_utc - start_utc < SchedulingPolicy.MIN_DURATION:
        _fail(f"Appointment must be at least {minutes} minutes long")

    hours = int(SchedulingPolicy.MAX_DURATION.total_seconds() // 3600)
    if end_utc - start_utc > SchedulingPolicy.MAX_DURATION:
        _fail(f"Appointment cannot be longer than {hours} hours")


def validate_booking(
    start_utc: datetime,
    end_utc: datetime,
    notes: str | None,
    now: datetime,
) -> None:
    """
    Validate a booking request.

    Raises:
        ValidationException: On the first rule violated
    """
    _validate_interval(start_utc, end_utc, "Start time must be before end time")

    if start_utc <= now + SchedulingPolicy.MIN_BOOKING_LEAD_TIME:
        minutes = int(SchedulingPolicy.MIN_BOOKING_LEAD_TIME.total_seconds() // 60)
        _fail(f"Appointment must be scheduled at least {minutes} minutes in advance")

    if notes is not None and len(notes) > SchedulingPolicy.MAX_NOTES_LENGTH:
        _fail(f"Notes cannot exceed {SchedulingPolicy.MAX_NOTES_LENGTH} characters")


def validate_reschedule(
    new_start_utc: datetime,
    new_end_utc: datetime,
    reason: str | None,
    now: datetime,
) -> None:
    """
    Validate a reschedule request.

    Raises:
        ValidationException: On the first rule violated
    """
    _validate_interval(new_start_utc, new_end_utc, "New start time must be before new end time")

    if new_start_utc <= now + SchedulingPolicy.MIN_RESCHEDULE_LEAD_TIME:
        hours = int(SchedulingPolicy.MIN_RESCHEDULE_LEAD_TIME.total_seconds() // 3600)
        _fail(f"Appointment must be rescheduled at least {hours} hours in advance")

    if reason is not None and len(reason) > SchedulingPolicy.MAX_RESCHEDULE_REASON_LENGTH:
        _fail(f"Reason cannot exceed {SchedulingPolicy.MAX_RESCHEDULE_REASON_LENGTH} characters")
