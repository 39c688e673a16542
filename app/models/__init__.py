"""Database models."""

from app.models.appointments import appointments
from app.models.doctors import doctors
from app.models.metadata import metadata
from app.models.patients import patients

__all__ = [
    "appointments",
    "doctors",
    "metadata",
    "patients",
]
