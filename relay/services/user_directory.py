"""
User directory service.

Resolves usernames to persisted User records. Registration paths use
resolve_or_create; the message path uses the read-only lookup so that an
unknown sender is never created implicitly.
"""

from ..async_persistence import AsyncPersistenceLayer
from ..exceptions import DatabaseError, DuplicateKeyError, ValidationError
from ..models.user import User
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)


class UserDirectory:
    """Lookup-or-create of user identities keyed by unique username."""

    def __init__(self, persistence: AsyncPersistenceLayer) -> None:
        self.persistence = persistence

    async def lookup(self, username: str) -> User | None:
        """
        Look up an existing user without creating one.

        Args:
            username: Username to look up

        Returns:
            User | None: The user, or None if the username is unknown

        Raises:
            DatabaseError: If the store cannot be queried
        """
        return await self.persistence.get_user_by_username(username)

    async def resolve_or_create(self, username: str) -> User:
        """
        Return the user for username, creating it on first use.

        The check-then-create is not atomic: two concurrent first-time
        registrations can both miss the lookup. The loser of the insert race
        gets a DuplicateKeyError and re-fetches the winner's record.

        Args:
            username: Non-empty username

        Returns:
            User: The existing or newly created user

        Raises:
            ValidationError: If username is blank
            DatabaseError: If the store fails
        """
        if not username or not username.strip():
            context = create_error_context(username=username)
            log_and_raise(
                ValidationError,
                "Username is required",
                context=context,
                field="username",
                user_friendly="Username is required",
            )

        existing = await self.persistence.get_user_by_username(username)
        if existing is not None:
            return existing

        try:
            return await self.persistence.create_user(username)
        except DuplicateKeyError:
            logger.info("Concurrent user creation detected, re-fetching", username=username)

        existing = await self.persistence.get_user_by_username(username)
        if existing is None:
            context = create_error_context(username=username)
            log_and_raise(
                DatabaseError,
                f"User '{username}' vanished after duplicate key rejection",
                context=context,
                operation="resolve_or_create",
                table="users",
                user_friendly="Failed to register user",
            )
        return existing
