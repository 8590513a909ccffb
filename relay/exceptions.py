"""
Exception hierarchy for the relay server.

Every relay error carries an ErrorContext describing where it happened
(username, room, connection) and logs itself when constructed, so callers
that merely translate errors into responses do not log twice.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Contextual information for error reporting."""

    username: str | None = None
    room: str | None = None
    connection_id: str | None = None
    request_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "username": self.username,
            "room": self.room,
            "connection_id": self.connection_id,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class RelayError(Exception):
    """
    Base exception for all relay errors.

    Provides structured error handling with context and metadata
    for proper error categorization and debugging.
    """

    log_level = "error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize a relay error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: Message safe to show to clients
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)
        self._already_logged = False

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        log_method = getattr(logger, self.log_level)
        log_method(
            "Relay error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )
        self._already_logged = True

    @property
    def already_logged(self) -> bool:
        return self._already_logged

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class DatabaseError(RelayError):
    """Durable store failures (unreachable store, query errors)."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        operation: str = "unknown",
        table: str | None = None,
        **kwargs: Any,
    ):
        details = dict(kwargs.pop("details", None) or {})
        details["operation"] = operation
        if table:
            details["table"] = table
        self.operation = operation
        self.table = table
        super().__init__(message, context, details=details, **kwargs)


class DuplicateKeyError(DatabaseError):
    """A unique constraint rejected an insert; callers recover by re-fetching."""

    log_level = "warning"


class ValidationError(RelayError):
    """Data validation errors."""

    log_level = "warning"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        field: str | None = None,
        value: Any | None = None,
        **kwargs: Any,
    ):
        details = dict(kwargs.pop("details", None) or {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        self.field = field
        self.value = value
        super().__init__(message, context, details=details, **kwargs)


class ConfigurationError(RelayError):
    """Configuration and setup errors."""

    def __init__(self, message: str, context: ErrorContext | None = None, config_key: str | None = None, **kwargs):
        details = dict(kwargs.pop("details", None) or {})
        if config_key:
            details["config_key"] = config_key
        self.config_key = config_key
        super().__init__(message, context, details=details, **kwargs)


def create_error_context(**kwargs: Any) -> ErrorContext:
    """
    Create an error context with the given parameters.

    Args:
        **kwargs: Context parameters

    Returns:
        ErrorContext object
    """
    return ErrorContext(**kwargs)
