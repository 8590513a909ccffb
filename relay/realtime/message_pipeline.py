"""
Message pipeline for the relay.

submit() takes one chat message end to end: resolve the sender (lookup
only, never create), persist, hydrate and fan out to the room's
subscribers. Failures never reach the sending client; they are logged and
reported to the caller as a tagged drop outcome.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..exceptions import DatabaseError
from ..schemas.message import MessageRead
from ..services.blob_store import parse_file_reference
from ..structured_logging.enhanced_logging_config import get_logger
from .envelope import build_event

if TYPE_CHECKING:
    from ..async_persistence import AsyncPersistenceLayer
    from ..services.user_directory import UserDirectory
    from .connection_manager import ConnectionManager

logger = get_logger(__name__)

MESSAGE_EVENT = "message"


class SubmitStatus(StrEnum):
    DELIVERED = "delivered"
    DROPPED = "dropped"


class DropReason(StrEnum):
    UNKNOWN_SENDER = "unknown-sender"
    INVALID_PAYLOAD = "invalid-payload"
    STORE_FAILURE = "store-failure"


@dataclass
class SubmitResult:
    """Outcome of a single submit call."""

    status: SubmitStatus
    message: MessageRead | None = None
    reason: DropReason | None = None
    delivery_stats: dict[str, Any] = field(default_factory=dict)

    @property
    def delivered(self) -> bool:
        return self.status is SubmitStatus.DELIVERED

    @classmethod
    def dropped(cls, reason: DropReason) -> "SubmitResult":
        return cls(status=SubmitStatus.DROPPED, reason=reason)


class MessagePipeline:
    """Validates, persists and fans out chat messages."""

    def __init__(
        self,
        user_directory: "UserDirectory",
        persistence: "AsyncPersistenceLayer",
        connection_manager: "ConnectionManager",
    ) -> None:
        self.user_directory = user_directory
        self.persistence = persistence
        self.connection_manager = connection_manager

    async def submit(self, sender_username: Any, room: Any, content: Any) -> SubmitResult:
        """
        Submit a chat message.

        Args:
            sender_username: Username of an existing user
            room: Target room key
            content: Message text or file reference marker

        Returns:
            SubmitResult: delivered with the hydrated message, or dropped with a reason
        """
        if not isinstance(room, str) or not room.strip() or not isinstance(content, str) or not content.strip():
            logger.warning("Dropping malformed message", sender=sender_username, room=room)
            return SubmitResult.dropped(DropReason.INVALID_PAYLOAD)
        if not isinstance(sender_username, str) or not sender_username:
            logger.warning("Dropping message without sender", room=room)
            return SubmitResult.dropped(DropReason.UNKNOWN_SENDER)

        try:
            sender = await self.user_directory.lookup(sender_username)
        except DatabaseError as e:
            logger.error("Dropping message: sender lookup failed", sender=sender_username, room=room, error=str(e))
            return SubmitResult.dropped(DropReason.STORE_FAILURE)

        if sender is None:
            logger.warning("Dropping message from unknown sender", sender=sender_username, room=room)
            return SubmitResult.dropped(DropReason.UNKNOWN_SENDER)

        try:
            message = await self.persistence.save_message(content, room, sender)
        except DatabaseError as e:
            logger.error("Dropping message: persistence failed", sender=sender_username, room=room, error=str(e))
            return SubmitResult.dropped(DropReason.STORE_FAILURE)

        event = build_event(MESSAGE_EVENT, message.to_wire(), room_id=room)
        stats = await self.connection_manager.broadcast_to_room(room, event)
        logger.info(
            "Message delivered",
            message_id=message.id,
            sender=sender_username,
            room=room,
            recipients=stats["successful_deliveries"],
            file_path=parse_file_reference(content),
        )
        return SubmitResult(status=SubmitStatus.DELIVERED, message=message, delivery_stats=stats)
