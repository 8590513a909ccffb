"""
Message repository for async persistence operations.

Messages are append-only. Reads return hydrated dictionaries in which the
sender reference is resolved to {"id", "username"}; a sender that no longer
resolves becomes the "unknown" sentinel instead of failing the read.
"""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ...database import DatabaseManager
from ...exceptions import DatabaseError
from ...models.message import Message
from ...models.user import User
from ...schemas.message import MessageRead, SenderRead
from ...structured_logging.enhanced_logging_config import get_logger
from ...utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)


def _utcnow_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class MessageRepository:
    """
    Repository for room message history.

    created_at is assigned here at persistence time and never decreases
    within a process, so (created_at, id) ordering matches submission order
    even across wall-clock adjustments.
    """

    def __init__(self, database: DatabaseManager) -> None:
        self._database = database
        self._last_created_at: datetime | None = None
        self._logger = get_logger(__name__)

    def _next_created_at(self) -> datetime:
        now = _utcnow_naive()
        if self._last_created_at is not None and now < self._last_created_at:
            now = self._last_created_at
        self._last_created_at = now
        return now

    @staticmethod
    def _hydrate(message: Message, user: User | None) -> MessageRead:
        sender = SenderRead(id=user.id, username=user.username) if user is not None else SenderRead.unknown()
        return MessageRead(
            id=message.id,
            content=message.content,
            room=message.room,
            created_at=message.created_at,
            sender=sender,
        )

    async def create(self, content: str, room: str, sender: User) -> MessageRead:
        """
        Persist a message and return it hydrated with its sender.

        Args:
            content: Message text (or file reference marker)
            room: Room identifier
            sender: Resolved sending user

        Returns:
            MessageRead: The stored message including id and created_at

        Raises:
            DatabaseError: If the insert fails
        """
        context = create_error_context(username=sender.username, room=room)
        context.metadata["operation"] = "create_message"

        try:
            async with self._database.get_session_maker()() as session:
                message = Message(
                    content=content,
                    room=room,
                    sender_id=sender.id,
                    created_at=self._next_created_at(),
                )
                session.add(message)
                await session.commit()
                await session.refresh(message)
        except SQLAlchemyError as e:
            log_and_raise(
                DatabaseError,
                f"Database error persisting message in room '{room}': {e}",
                context=context,
                operation="create_message",
                table="messages",
                user_friendly="Failed to store message",
            )

        self._logger.debug("Message persisted", message_id=message.id, room=room, sender=sender.username)
        return self._hydrate(message, sender)

    async def list_by_room(self, room: str) -> list[MessageRead]:
        """
        Return the full history of a room, oldest first.

        Args:
            room: Room identifier

        Returns:
            list[MessageRead]: Hydrated messages ordered by (created_at, id); empty for unknown rooms

        Raises:
            DatabaseError: If the store cannot be queried
        """
        context = create_error_context(room=room)
        context.metadata["operation"] = "list_messages_by_room"

        try:
            async with self._database.get_session_maker()() as session:
                stmt = (
                    select(Message, User)
                    .outerjoin(User, User.id == Message.sender_id)
                    .where(Message.room == room)
                    .order_by(Message.created_at, Message.id)
                )
                result = await session.execute(stmt)
                return [self._hydrate(message, user) for message, user in result.all()]
        except SQLAlchemyError as e:
            log_and_raise(
                DatabaseError,
                f"Database error loading history for room '{room}': {e}",
                context=context,
                operation="list_messages_by_room",
                table="messages",
                user_friendly="Failed to load message history",
            )
