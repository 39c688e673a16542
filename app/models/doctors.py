"""Doctor model definition using SQLAlchemy Core."""

from sqlalchemy import Column, String, Table, Text, Uuid, func

from app.models.metadata import metadata
from app.models.types import UTCDateTime

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("full_name", Text, nullable=False),
    Column("specialty", String(200), nullable=True, index=True),
    # Metadata
    Column("created_at", UTCDateTime, nullable=False, server_default=func.now()),
    Column("updated_at", UTCDateTime, nullable=False, server_default=func.now()),
)
