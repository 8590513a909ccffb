"""
Database configuration for the relay server.

This module provides the async engine, session management and schema
creation for the message store. PostgreSQL (asyncpg) is the production
backend; SQLite (aiosqlite) serves local development and tests.
"""

from pathlib import Path
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .exceptions import ConfigurationError, DatabaseError
from .structured_logging.enhanced_logging_config import get_logger
from .utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Return the async-driver form of a configured database URL."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://") and not database_url.startswith("sqlite+aiosqlite"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


class DatabaseManager:
    """
    Owner of the async engine and session maker.

    One instance is created per application (by ApplicationContainer);
    initialization is lazy so constructing the manager never touches the
    network.
    """

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
    ) -> None:
        if not database_url:
            log_and_raise(ConfigurationError, "Database URL cannot be empty", config_key="database.url")
        self.database_url = normalize_database_url(database_url)
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.engine: AsyncEngine | None = None
        self.session_maker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_config(cls, config: Any) -> "DatabaseManager":
        """Build a manager from an AppConfig."""
        return cls(
            config.database.url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
            pool_timeout=config.database.pool_timeout,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _engine_kwargs(self) -> dict[str, Any]:
        if not self.is_sqlite:
            return {
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
                "pool_pre_ping": True,
            }

        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        database = make_url(self.database_url).database
        if not database or database == ":memory:":
            # In-memory SQLite lives inside one connection; every session must share it
            kwargs["poolclass"] = StaticPool
        else:
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        return kwargs

    def _initialize_database(self) -> None:
        """Create the engine and session maker."""
        if self.engine is not None:
            return

        self.engine = create_async_engine(self.database_url, echo=self.echo, **self._engine_kwargs())
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database engine created",
            backend="sqlite" if self.is_sqlite else "postgresql",
            database_url=make_url(self.database_url).render_as_string(hide_password=True),
        )

    def get_engine(self) -> AsyncEngine:
        """Get the database engine, initializing if necessary."""
        self._initialize_database()
        assert self.engine is not None
        return self.engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        """Get the session maker, initializing if necessary."""
        self._initialize_database()
        assert self.session_maker is not None
        return self.session_maker

    async def create_tables(self) -> None:
        """
        Create all tables registered on the shared metadata.

        Raises:
            DatabaseError: If the store cannot be reached
        """
        # Register models on the metadata before create_all
        from . import models  # noqa: F401  # pylint: disable=unused-import

        from .metadata import metadata

        context = create_error_context()
        context.metadata["operation"] = "create_tables"
        try:
            async with self.get_engine().begin() as conn:
                await conn.run_sync(metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            log_and_raise(
                DatabaseError,
                f"Failed to create tables: {e}",
                context=context,
                operation="create_tables",
                user_friendly="Message store unavailable",
            )
        logger.info("Database tables verified", tables=sorted(metadata.tables))

    async def close(self) -> None:
        """Dispose the engine and release pooled connections."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.session_maker = None
