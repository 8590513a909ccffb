"""
Room membership for the relay.

Joining a room subscribes the connection to the room's broadcast channel
and returns the room's full history. The subscription happens before the
history read, so a message persisted while history loads is delivered
live rather than lost in between.
"""

from typing import TYPE_CHECKING

from ..schemas.message import MessageRead
from ..structured_logging.enhanced_logging_config import get_logger

if TYPE_CHECKING:
    from ..async_persistence import AsyncPersistenceLayer
    from .connection_manager import ConnectionManager

logger = get_logger(__name__)


class RoomMembership:
    """Subscribes connections to rooms and serves room history."""

    def __init__(self, connection_manager: "ConnectionManager", persistence: "AsyncPersistenceLayer") -> None:
        self.connection_manager = connection_manager
        self.persistence = persistence

    def subscribe(self, connection_id: str, room: str) -> None:
        """Start delivering subsequent room broadcasts to connection_id."""
        self.connection_manager.subscribe_to_room(connection_id, room)

    async def history(self, room: str) -> list[MessageRead]:
        """
        Return every persisted message for room, oldest first.

        Unknown rooms yield an empty list.

        Raises:
            DatabaseError: If the store cannot be queried
        """
        return await self.persistence.get_room_messages(room)

    async def join(self, connection_id: str, room: str) -> list[MessageRead]:
        """
        Subscribe connection_id to room and return the room's ordered history.

        Raises:
            DatabaseError: If the history read fails; the subscription remains
        """
        self.subscribe(connection_id, room)
        messages = await self.history(room)
        logger.info("Connection joined room", connection_id=connection_id, room=room, history_size=len(messages))
        return messages
