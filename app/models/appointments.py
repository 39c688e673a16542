"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    event,
    func,
)

from app.models.metadata import metadata
from app.models.types import UTCDateTime

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True),
    # Ownership / references
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    # Interval, half-open [start_utc, end_utc)
    Column("start_utc", UTCDateTime, nullable=False),
    Column("end_utc", UTCDateTime, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="scheduled"),
    Column("notes", String(1024), nullable=True),
    Column("completed_utc", UTCDateTime, nullable=True),
    Column("cancelled_utc", UTCDateTime, nullable=True),
    Column("cancellation_reason", String(512), nullable=True),
    # Optimistic concurrency token
    Column("version", Integer, nullable=False, server_default="1"),
    # Audit fields
    Column("created_at", UTCDateTime, nullable=False, server_default=func.now()),
    Column("updated_at", UTCDateTime, nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint("start_utc < end_utc", name="appointments_interval_check"),
    CheckConstraint(
        "status IN ('scheduled', 'rescheduled', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "(status = 'completed' AND completed_utc IS NOT NULL AND cancelled_utc IS NULL)"
        " OR (status = 'cancelled' AND cancelled_utc IS NOT NULL AND completed_utc IS NULL"
        " AND cancellation_reason IS NOT NULL)"
        " OR (status IN ('scheduled', 'rescheduled') AND completed_utc IS NULL"
        " AND cancelled_utc IS NULL)",
        name="appointments_terminal_state_check",
    ),
)

# Doctor availability lookups
Index(
    "ix_appointments_doctor_time_range",
    appointments.c.doctor_id,
    appointments.c.start_utc,
    appointments.c.end_utc,
)
# Patient history lookups
Index("ix_appointments_patient_start", appointments.c.patient_id, appointments.c.start_utc)

# PostgreSQL only: reject overlapping active intervals for the same doctor
# at the storage level, so two concurrent inserts cannot both commit.
event.listen(
    appointments,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    appointments,
    "after_create",
    DDL(
        "ALTER TABLE appointments ADD CONSTRAINT appointments_doctor_no_overlap "
        "EXCLUDE USING gist (doctor_id WITH =, tstzrange(start_utc, end_utc, '[)') WITH &&) "
        "WHERE (status IN ('scheduled', 'rescheduled'))"
    ).execute_if(dialect="postgresql"),
)
