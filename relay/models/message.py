"""
Message model for room-scoped chat history.

Messages are immutable once persisted. The sender column is a weak
reference to users.id with no foreign-key constraint. A message whose user
is missing hydrates with the sentinel sender.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Message(Base):
    """A chat message persisted in a room's history."""

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_room_created_at", "room", "created_at", "id"),)

    # Autoincrement id doubles as the insertion-order tie breaker for equal timestamps
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sender_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    room: Mapped[str] = mapped_column(String(255), nullable=False)
    # Naive UTC, assigned by the repository at persistence time
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, room='{self.room}', sender_id='{self.sender_id}')>"
