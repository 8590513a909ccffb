"""
Enhanced structlog-based logging configuration for the relay server.

This module provides the logging system with contextvars-based request
context, correlation IDs and sensitive-data redaction.

This is the main entry point for the logging system. Implementation details
are split across the sibling modules of this package.
"""

import json
import logging
from typing import Any, cast

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from relay.structured_logging.logging_context import (
    bind_request_context,
    clear_request_context,
    get_current_context,
    unbind_request_context,
)
from relay.structured_logging.logging_file_setup import setup_file_logging
from relay.structured_logging.logging_processors import add_correlation_id, sanitize_sensitive_data

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_structlog",
    "get_current_context",
    "get_logger",
    "log_exception_once",
    "setup_enhanced_logging",
    "unbind_request_context",
]

# Infrastructure code may use structlog directly; everything else goes through get_logger()
logger = structlog.get_logger(__name__)


class _LoggingState:
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None


_logging_state = _LoggingState()


def configure_structlog(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog processors and renderer.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for machine-readable lines, "human" for key=value lines
    """
    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"])

    structlog.configure(
        processors=[
            # Security first - redact sensitive data
            sanitize_sensitive_data,
            merge_contextvars,
            add_correlation_id,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )
    logging.getLogger().setLevel(getattr(logging, log_level.upper(), logging.INFO))


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from the server configuration dictionary.

    Args:
        config: Server configuration dictionary (AppConfig.to_legacy_dict())
        force_reconfigure: When True, reconfigure even if already initialized
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("relay.structured_logging.setup").debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment", "local")
    log_level = logging_config.get("level", "INFO")
    log_format = logging_config.get("format", "json")

    configure_structlog(log_level, log_format)

    if logging_config.get("disable_logging", False):
        logging.getLogger().handlers = [logging.NullHandler()]
        _logging_state.initialized = True
        _logging_state.signature = config_signature
        return

    log_dir = setup_file_logging(environment, logging_config, log_level)
    _configure_uvicorn_logging()

    get_logger("relay.structured_logging.setup").info(
        "Logging system initialized",
        environment=environment,
        log_level=log_level,
        log_format=log_format,
        log_dir=str(log_dir),
    )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def _configure_uvicorn_logging() -> None:
    """Route uvicorn's own loggers through the root handlers."""
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    This is the public API for obtaining loggers. All application code
    should use this function rather than calling structlog.get_logger()
    directly.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    mark_logged: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log an exception once, respecting exceptions that have already been logged.

    Args:
        bound_logger: Structlog bound logger instance.
        level: Logging level to use (for example, "error" or "warning").
        message: Log message to emit.
        exc: Optional exception to include in the log entry.
        mark_logged: When True, mark the exception as logged to prevent duplicates.
        **kwargs: Additional key-value pairs for structured logging.
    """
    if exc is not None:
        if getattr(exc, "already_logged", False) or getattr(exc, "_already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)

    if exc is not None and mark_logged:
        marker = getattr(exc, "mark_logged", None)
        if callable(marker):
            marker()
        else:
            cast(Any, exc)._already_logged = True
