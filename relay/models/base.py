"""
Shared SQLAlchemy DeclarativeBase for all models.

All models must inherit from this Base so they register on the same
metadata (and so string references between models resolve).
"""

from sqlalchemy.orm import DeclarativeBase

from ..metadata import metadata


class Base(DeclarativeBase):
    """Shared declarative base for relay models."""

    metadata = metadata
