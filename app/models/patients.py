"""Patient model definition using SQLAlchemy Core."""

from sqlalchemy import Column, String, Table, Text, Uuid, func

from app.models.metadata import metadata
from app.models.types import UTCDateTime

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("full_name", Text, nullable=False),
    # Contact
    Column("email", String(320), nullable=True),
    Column("phone", String(20), nullable=True),
    # Metadata
    Column("created_at", UTCDateTime, nullable=False, server_default=func.now()),
    Column("updated_at", UTCDateTime, nullable=False, server_default=func.now()),
)
