"""Scheduling policy constants.

Single source of truth for the limits consulted by the aggregate, the
request validators and the tests.
"""

from datetime import timedelta
from typing import Final


class SchedulingPolicy:
    """Business limits for appointment scheduling."""

    # Duration bounds (inclusive)
    MIN_DURATION: Final = timedelta(minutes=10)
    MAX_DURATION: Final = timedelta(hours=8)

    # A new booking must start strictly later than now + this
    MIN_BOOKING_LEAD_TIME: Final = timedelta(minutes=15)

    # No reschedule once now >= current start - cutoff
    RESCHEDULE_CUTOFF: Final = timedelta(hours=24)

    # A rescheduled appointment must start strictly later than now + this
    MIN_RESCHEDULE_LEAD_TIME: Final = timedelta(hours=2)

    # Text limits
    MAX_NOTES_LENGTH: Final = 1024
    MAX_CANCELLATION_REASON_LENGTH: Final = 512
    MAX_RESCHEDULE_REASON_LENGTH: Final = 512
