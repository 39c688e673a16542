"""Appointment persistence built on SQLAlchemy Core."""

import asyncio
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, exists, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConcurrencyConflictError
from app.domain.appointment import ACTIVE_STATUSES, Appointment
from app.models.appointments import appointments
from app.models.doctors import doctors
from app.models.patients import patients

logger = structlog.get_logger(__name__)


class AppointmentRepository:
    """
    Unit of work over the appointments table.

    Aggregates returned by :meth:`find_by_id` are tracked together with a
    snapshot of their state; :meth:`save` writes new aggregates, updates the
    changed ones guarded by their ``version`` token, and commits atomically.
    """

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db
        self._new: list[Appointment] = []
        self._tracked: dict[UUID, tuple[Appointment, dict[str, Any]]] = {}

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        """
        Load an appointment by ID.

        Args:
            appointment_id: Appointment ID

        Returns:
            Tracked aggregate, or None if absent
        """
        tracked = self._tracked.get(appointment_id)
        if tracked:
            return tracked[0]

        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if row is None:
            return None

        appointment = Appointment.rehydrate(dict(row))
        self._tracked[appointment_id] = (appointment, appointment.to_state())
        return appointment

    async def has_overlap(
        self,
        doctor_id: UUID,
        start_utc: datetime,
        end_utc: datetime,
        exclude_id: UUID | None = None,
    ) -> bool:
        """
        Check whether a doctor has an active appointment intersecting [start, end).

        Args:
            doctor_id: Doctor ID
            start_utc: Candidate start
            end_utc: Candidate end
            exclude_id: Appointment to ignore, used when rescheduling it

        Returns:
            True if another scheduled or rescheduled appointment overlaps
        """
        conditions = [
            appointments.c.doctor_id == doctor_id,
            appointments.c.status.in_([status.value for status in ACTIVE_STATUSES]),
            appointments.c.start_utc < end_utc,
            appointments.c.end_utc > start_utc,
        ]

        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        stmt = select(exists().where(and_(*conditions)))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def patient_exists(self, patient_id: UUID) -> bool:
        """Check whether a patient exists."""
        stmt = select(exists().where(patients.c.id == patient_id))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def doctor_exists(self, doctor_id: UUID) -> bool:
        """Check whether a doctor exists."""
        stmt = select(exists().where(doctors.c.id == doctor_id))
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def lock_doctor_schedule(self, doctor_id: UUID) -> None:
        """
        Lock the doctor row until the current transaction ends.

        Serializes concurrent writers for the same doctor on backends that
        support ``SELECT ... FOR UPDATE``; SQLite ignores the clause.
        """
        stmt = select(doctors.c.id).where(doctors.c.id == doctor_id).with_for_update()
        await self.db.execute(stmt)

    def add(self, appointment: Appointment) -> None:
        """Register a new appointment to be inserted on :meth:`save`."""
        self._new.append(appointment)

    async def save(self) -> None:
        """
        Persist pending changes in a single commit.

        Raises:
            ConcurrencyConflictError: If a tracked appointment was modified
                since it was loaded, or the store rejected the write
        """
        now = datetime.now(UTC)
        inserted: list[tuple[Appointment, UUID]] = []
        updated: list[Appointment] = []

        try:
            for appointment in self._new:
                appointment_id = uuid4()
                values = appointment.to_state()
                values.update(id=appointment_id, version=1, created_at=now, updated_at=now)
                await self.db.execute(insert(appointments).values(**values))
                inserted.append((appointment, appointment_id))

            for appointment, snapshot in self._tracked.values():
                state = appointment.to_state()
                changes = {key: value for key, value in state.items() if snapshot[key] != value}
                if not changes:
                    continue

                stmt = (
                    update(appointments)
                    .where(
                        and_(
                            appointments.c.id == appointment.id,
                            appointments.c.version == appointment.version,
                        )
                    )
                    .values(**changes, version=appointment.version + 1, updated_at=now)
                )
                result = await self.db.execute(stmt)
                if result.rowcount != 1:
                    raise ConcurrencyConflictError(
                        f"Appointment {appointment.id} was modified by another transaction"
                    )
                updated.append(appointment)

            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("appointment_write_rejected", error=str(e.orig))
            raise ConcurrencyConflictError("The store rejected the appointment write") from e
        except (Exception, asyncio.CancelledError):
            await self.db.rollback()
            raise

        for appointment, appointment_id in inserted:
            appointment.assign_id(appointment_id)
            appointment.version = 1
            self._tracked[appointment_id] = (appointment, appointment.to_state())
        for appointment in updated:
            appointment.version += 1
            self._tracked[appointment.id] = (appointment, appointment.to_state())
        self._new.clear()
