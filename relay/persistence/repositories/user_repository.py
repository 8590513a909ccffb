"""
User repository for async persistence operations.

This module provides the lookup and insert primitives of the user
directory. Lookup-or-create semantics live in services.user_directory.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...database import DatabaseManager
from ...exceptions import DatabaseError, DuplicateKeyError
from ...models.user import User
from ...structured_logging.enhanced_logging_config import get_logger
from ...utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)


class UserRepository:
    """Repository for user identity records."""

    def __init__(self, database: DatabaseManager) -> None:
        self._database = database
        self._logger = get_logger(__name__)

    async def get_by_username(self, username: str) -> User | None:
        """
        Get a user by exact username.

        Args:
            username: Username (case-sensitive)

        Returns:
            User | None: The user, or None if absent

        Raises:
            DatabaseError: If the store cannot be queried
        """
        context = create_error_context(username=username)
        context.metadata["operation"] = "get_user_by_username"

        try:
            async with self._database.get_session_maker()() as session:
                result = await session.execute(select(User).where(User.username == username))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            log_and_raise(
                DatabaseError,
                f"Database error retrieving user '{username}': {e}",
                context=context,
                operation="get_user_by_username",
                table="users",
                user_friendly="Failed to retrieve user",
            )

    async def create(self, username: str) -> User:
        """
        Insert a new user.

        Args:
            username: Username to create

        Returns:
            User: The persisted user with its generated id

        Raises:
            DuplicateKeyError: If another writer created the username first
            DatabaseError: If the insert fails for any other reason
        """
        context = create_error_context(username=username)
        context.metadata["operation"] = "create_user"

        try:
            async with self._database.get_session_maker()() as session:
                user = User(username=username)
                session.add(user)
                await session.commit()
                await session.refresh(user)
        except IntegrityError as e:
            log_and_raise(
                DuplicateKeyError,
                f"Username '{username}' already exists: {e.orig}",
                context=context,
                operation="create_user",
                table="users",
                user_friendly="Username already exists",
            )
        except SQLAlchemyError as e:
            log_and_raise(
                DatabaseError,
                f"Database error creating user '{username}': {e}",
                context=context,
                operation="create_user",
                table="users",
                user_friendly="Failed to create user",
            )

        self._logger.info("User created", username=username, user_id=user.id)
        return user
