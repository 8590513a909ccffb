"""
Context management utilities for structured logging.

This module provides functions for binding and clearing the per-request or
per-connection logging context held in structlog contextvars.
"""

import uuid
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, unbind_contextvars


def bind_request_context(
    correlation_id: str | None = None,
    username: str | None = None,
    connection_id: str | None = None,
    request_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Bind request context to the current logging context.

    Every log entry emitted afterwards in the same context (HTTP request or
    WebSocket connection task) carries these values.

    Args:
        correlation_id: Unique correlation ID; defaults to connection_id, else generated
        username: Chat username if known
        connection_id: WebSocket connection handle id if applicable
        request_id: Request path identifier if applicable
        **kwargs: Additional context variables
    """
    if correlation_id is None:
        correlation_id = connection_id or str(uuid.uuid4())

    context_vars = {
        "correlation_id": correlation_id,
        "username": username,
        "connection_id": connection_id,
        "request_id": request_id,
        **kwargs,
    }

    # Remove None values
    context_vars = {k: v for k, v in context_vars.items() if v is not None}

    bind_contextvars(**context_vars)


def unbind_request_context(*keys: str) -> None:
    """Remove specific keys from the current logging context."""
    unbind_contextvars(*keys)


def clear_request_context() -> None:
    """Clear the current request context from logging."""
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    """Get the current logging context."""
    try:
        return structlog.contextvars.get_contextvars()
    except (AttributeError, KeyError):
        return {}
