"""
Error logging utilities for the relay server.

This module provides standardized helpers that build error contexts from
HTTP requests and WebSocket connections and that log before raising, so
error handling reads the same across the codebase.
"""

from typing import Any, NoReturn

from fastapi import Request, WebSocket

from ..exceptions import ErrorContext, RelayError, create_error_context
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

__all__ = [
    "create_context_from_request",
    "create_context_from_websocket",
    "create_error_context",
    "log_and_raise",
]


def log_and_raise(
    exception_class: type[RelayError],
    message: str,
    context: ErrorContext | None = None,
    details: dict[str, Any] | None = None,
    user_friendly: str | None = None,
    **kwargs: Any,
) -> NoReturn:
    """
    Build a relay exception (which logs itself) and raise it.

    Args:
        exception_class: The relay exception class to raise
        message: Technical error message
        context: Error context information
        details: Additional error details
        user_friendly: Message safe to show to clients
        **kwargs: Extra keyword arguments for the exception class

    Raises:
        exception_class: Always
    """
    raise exception_class(message, context=context, details=details, user_friendly=user_friendly, **kwargs)


def create_context_from_request(request: Request | None) -> ErrorContext:
    """Create an error context from a FastAPI request."""
    context = create_error_context()
    if request is None:
        return context
    context.request_id = request.headers.get("X-Correlation-ID") or str(request.url.path)
    context.metadata["method"] = request.method
    context.metadata["path"] = str(request.url.path)
    if request.client:
        context.metadata["remote_addr"] = request.client.host
    return context


def create_context_from_websocket(
    websocket: WebSocket | None, username: str | None = None, connection_id: str | None = None
) -> ErrorContext:
    """Create an error context from a WebSocket connection."""
    context = create_error_context(username=username, connection_id=connection_id)
    if websocket is None:
        return context
    context.metadata["path"] = str(websocket.url.path)
    if websocket.client:
        context.metadata["remote_addr"] = websocket.client.host
    return context
