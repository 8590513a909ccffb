"""
Dependency injection container for the relay server.

The container owns every long-lived service and is the single source of
truth for their lifecycle. It is created by the application lifespan and
stored on app.state.container; request handlers reach services through
relay.dependencies.

USAGE:
    container = ApplicationContainer()
    await container.initialize()
    app.state.container = container
    ...
    await container.shutdown()
"""

import asyncio
from typing import TYPE_CHECKING

from .structured_logging.enhanced_logging_config import get_logger

if TYPE_CHECKING:
    from .async_persistence import AsyncPersistenceLayer
    from .config.models import AppConfig
    from .database import DatabaseManager
    from .realtime.connection_manager import ConnectionManager
    from .realtime.message_pipeline import MessagePipeline
    from .realtime.presence_registry import PresenceRegistry
    from .realtime.room_membership import RoomMembership
    from .services.blob_store import LocalBlobStore
    from .services.user_directory import UserDirectory

logger = get_logger(__name__)


class ApplicationContainer:
    """Owns configuration, persistence and the real-time coordination services."""

    def __init__(self, config: "AppConfig | None" = None) -> None:
        self.config = config
        self.database_manager: DatabaseManager | None = None
        self.persistence: AsyncPersistenceLayer | None = None
        self.user_directory: UserDirectory | None = None
        self.connection_manager: ConnectionManager | None = None
        self.presence_registry: PresenceRegistry | None = None
        self.room_membership: RoomMembership | None = None
        self.message_pipeline: MessagePipeline | None = None
        self.blob_store: LocalBlobStore | None = None

        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Build all services in dependency order and create the schema.

        Raises:
            DatabaseError: If the message store cannot be prepared
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            from .async_persistence import AsyncPersistenceLayer
            from .config import get_config
            from .database import DatabaseManager
            from .realtime.connection_manager import ConnectionManager
            from .realtime.message_pipeline import MessagePipeline
            from .realtime.presence_registry import PresenceRegistry
            from .realtime.room_membership import RoomMembership
            from .services.blob_store import LocalBlobStore
            from .services.user_directory import UserDirectory

            if self.config is None:
                self.config = get_config()

            logger.info("Initializing application container")

            self.database_manager = DatabaseManager.from_config(self.config)
            await self.database_manager.create_tables()
            self.persistence = AsyncPersistenceLayer(self.database_manager)

            self.user_directory = UserDirectory(self.persistence)
            self.connection_manager = ConnectionManager()
            self.presence_registry = PresenceRegistry(
                self.connection_manager,
                guard_stale_disconnect=self.config.presence.guard_stale_disconnect,
            )
            self.room_membership = RoomMembership(self.connection_manager, self.persistence)
            self.message_pipeline = MessagePipeline(self.user_directory, self.persistence, self.connection_manager)

            self.blob_store = LocalBlobStore(
                self.config.upload.directory,
                public_path=self.config.upload.public_path,
                max_file_size=self.config.upload.max_file_size,
            )
            self.blob_store.ensure_directory()

            self._initialized = True
            logger.info("Application container initialized")

    async def shutdown(self) -> None:
        """Close open sockets and dispose the database engine."""
        logger.info("Shutting down application container")
        if self.connection_manager is not None:
            await self.connection_manager.close_all()
        if self.database_manager is not None:
            await self.database_manager.close()
        self._initialized = False
        logger.info("Application container shut down")
