"""Doctor calendar conflict detection."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

import structlog

logger = structlog.get_logger(__name__)


class OverlapQuery(Protocol):
    """Store capability needed for conflict detection."""

    async def has_overlap(
        self,
        doctor_id: UUID,
        start_utc: datetime,
        end_utc: datetime,
        exclude_id: UUID | None = None,
    ) -> bool: ...


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Half-open interval intersection; touching endpoints do not overlap."""
    return a_start < b_end and a_end > b_start


class ConflictDetector:
    """Detects overlapping active appointments for a doctor.

    Reads committed state only. The result can be stale by the time the
    caller commits, so the store must still guard the write.
    """

    def __init__(self, store: OverlapQuery):
        """Initialize detector with the overlap query."""
        self.store = store

    async def has_conflict(
        self,
        doctor_id: UUID,
        start_utc: datetime,
        end_utc: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> bool:
        """
        Check the doctor's calendar for a clash with [start_utc, end_utc).

        Args:
            doctor_id: Doctor ID
            start_utc: Candidate start
            end_utc: Candidate end
            exclude_appointment_id: Appointment being moved, ignored in the check

        Returns:
            True if another scheduled or rescheduled appointment overlaps
        """
        conflict = await self.store.has_overlap(
            doctor_id, start_utc, end_utc, exclude_id=exclude_appointment_id
        )

        if conflict:
            logger.info(
                "appointment_conflict_detected",
                doctor_id=str(doctor_id),
                start_utc=start_utc.isoformat(),
                end_utc=end_utc.isoformat(),
                exclude_appointment_id=(
                    str(exclude_appointment_id) if exclude_appointment_id else None
                ),
            )

        return conflict
