"""Health check endpoints."""

from datetime import timedelta
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import find_missing_tables, get_db
from app.domain.policies import SchedulingPolicy

logger = structlog.get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class SchedulingRules(BaseModel):
    """Active booking rules, in minutes."""

    min_duration_minutes: int
    max_duration_minutes: int
    min_booking_lead_minutes: int
    reschedule_cutoff_minutes: int
    min_reschedule_lead_minutes: int


class DetailedHealthResponse(HealthResponse):
    """Health of the appointment store plus the rules the service enforces."""

    database: str
    database_backend: str
    schema_ready: bool
    missing_tables: list[str]
    scheduling_rules: SchedulingRules


def _minutes(value: timedelta) -> int:
    return int(value.total_seconds() // 60)


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DetailedHealthResponse:
    """
    Check that the appointment store is reachable and its tables exist.

    Returns:
        "healthy" only when the database answers and the scheduling schema
        is complete; "degraded" otherwise
    """
    try:
        await db.execute(text("SELECT 1"))
        missing_tables = await find_missing_tables(db)
        db_healthy = True
    except Exception as e:
        logger.warning("health_database_unreachable", error=str(e))
        missing_tables = []
        db_healthy = False

    schema_ready = db_healthy and not missing_tables

    return DetailedHealthResponse(
        status="healthy" if schema_ready else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        database_backend=db.get_bind().dialect.name,
        schema_ready=schema_ready,
        missing_tables=missing_tables,
        scheduling_rules=SchedulingRules(
            min_duration_minutes=_minutes(SchedulingPolicy.MIN_DURATION),
            max_duration_minutes=_minutes(SchedulingPolicy.MAX_DURATION),
            min_booking_lead_minutes=_minutes(SchedulingPolicy.MIN_BOOKING_LEAD_TIME),
            reschedule_cutoff_minutes=_minutes(SchedulingPolicy.RESCHEDULE_CUTOFF),
            min_reschedule_lead_minutes=_minutes(SchedulingPolicy.MIN_RESCHEDULE_LEAD_TIME),
        ),
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Liveness check."""
    return {"message": "pong"}
