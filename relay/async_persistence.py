"""
Async persistence layer for the relay server.

This is a facade that delegates to focused async repositories, so services
depend on one object rather than on each repository.
"""

from .database import DatabaseManager
from .models.user import User
from .persistence.repositories import MessageRepository, UserRepository
from .schemas.message import MessageRead
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class AsyncPersistenceLayer:
    """
    Async persistence facade over the user and message repositories.

    All operations raise DatabaseError (or DuplicateKeyError) on store
    failures; none of them swallow errors.
    """

    def __init__(self, database: DatabaseManager) -> None:
        self._database = database
        self._user_repo = UserRepository(database)
        self._message_repo = MessageRepository(database)
        logger.debug("AsyncPersistenceLayer initialized")

    async def get_user_by_username(self, username: str) -> User | None:
        """Get a user by exact username. Delegates to UserRepository."""
        return await self._user_repo.get_by_username(username)

    async def create_user(self, username: str) -> User:
        """Create a user. Delegates to UserRepository."""
        return await self._user_repo.create(username)

    async def save_message(self, content: str, room: str, sender: User) -> MessageRead:
        """Persist a message and return it hydrated. Delegates to MessageRepository."""
        return await self._message_repo.create(content, room, sender)

    async def get_room_messages(self, room: str) -> list[MessageRead]:
        """Get a room's hydrated history, oldest first. Delegates to MessageRepository."""
        return await self._message_repo.list_by_room(room)
