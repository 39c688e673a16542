"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, get_clock
from app.database import get_db
from app.services.appointment_service import AppointmentService
from app.services.event_dispatcher import EventSink
from app.services.notification_service import create_event_dispatcher


def get_event_sink() -> EventSink:
    """Dispatcher that receives committed appointment events."""
    return create_event_dispatcher()


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    event_sink: Annotated[EventSink, Depends(get_event_sink)],
) -> AppointmentService:
    """
    Build the appointment service for one request.

    Args:
        db: Database session scoped to the request
        clock: Time source for scheduling rules
        event_sink: Receiver of committed domain events

    Returns:
        Appointment service bound to the session
    """
    return AppointmentService(db, clock=clock, event_sink=event_sink)


# Type aliases for dependency injection
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
