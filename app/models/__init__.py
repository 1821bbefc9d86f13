"""Database models."""

from app.models.appointments import appointments
from app.models.base import metadata
from app.models.blogs import blogs
from app.models.doctors import doctors

__all__ = [
    "appointments",
    "blogs",
    "doctors",
    "metadata",
]
