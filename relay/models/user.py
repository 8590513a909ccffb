"""
User model for the relay user directory.

A user is an identity record keyed by a globally unique username. Users
are created lazily on first connection or registration, never updated
and never deleted.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _generate_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Chat identity; uniqueness of username is enforced by the database."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_user_id)
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # Persist naive UTC
    created_at: Mapped[datetime] = mapped_column(
        DateTime(), default=lambda: datetime.now(UTC).replace(tzinfo=None), nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', username='{self.username}')>"
