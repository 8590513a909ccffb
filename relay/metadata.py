"""
Shared SQLAlchemy metadata for relay models.

This module provides the shared metadata instance that all models
use to avoid circular imports between database.py and models.
"""

from sqlalchemy import MetaData

# Naming convention keeps constraint names stable across SQLite and PostgreSQL
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)
