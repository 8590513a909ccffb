"""
WebSocket handler for relay real-time communication.

This module drives one WebSocket from handshake to teardown: it validates
the handshake username, opens a ConnectionSession, feeds it client frames
one at a time and always closes the session on exit.
"""

import asyncio
import json
from typing import TYPE_CHECKING

from fastapi import WebSocket, status

from ..exceptions import DatabaseError
from ..structured_logging.enhanced_logging_config import (
    bind_request_context,
    clear_request_context,
    get_logger,
    log_exception_once,
)
from ..utils.error_logging import create_context_from_websocket
from .connection_lifecycle import ConnectionSession

if TYPE_CHECKING:
    from ..container import ApplicationContainer

logger = get_logger(__name__)


def _create_session(container: "ApplicationContainer", username: str, connection_id: str) -> ConnectionSession:
    return ConnectionSession(
        username,
        connection_id,
        user_directory=container.user_directory,
        presence=container.presence_registry,
        membership=container.room_membership,
        pipeline=container.message_pipeline,
        connection_manager=container.connection_manager,
    )


async def _handle_websocket_message_loop(websocket: WebSocket, session: ConnectionSession) -> None:
    """Receive frames until the client goes away; each frame is fully handled before the next."""
    while True:
        try:
            message = await websocket.receive()
        except RuntimeError as e:
            # Starlette raises RuntimeError when receiving on a socket that is already closed
            logger.warning("WebSocket connection lost", error=str(e))
            return

        if message["type"] == "websocket.disconnect":
            logger.info("WebSocket disconnected", code=message.get("code"))
            return

        raw = message.get("text")
        if raw is None:
            logger.warning("Ignoring non-text frame", size=len(message.get("bytes") or b""))
            continue

        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring frame with invalid JSON", size=len(raw))
            continue

        await session.dispatch(frame)


async def handle_websocket_connection(websocket: WebSocket, username: str | None, container: "ApplicationContainer") -> None:
    """
    Handle a WebSocket connection for one client.

    Args:
        websocket: The (not yet accepted) WebSocket
        username: Username from the handshake query string
        container: Application container providing the relay services
    """
    await websocket.accept()

    if not username or not username.strip():
        logger.warning("Rejecting WebSocket without username", client=str(websocket.client))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="username is required")
        return

    connection_manager = container.connection_manager
    connection_id = connection_manager.register(websocket, username)
    bind_request_context(correlation_id=connection_id, username=username, connection_id=connection_id)
    session = _create_session(container, username, connection_id)

    try:
        try:
            await session.open()
        except DatabaseError as e:
            context = create_context_from_websocket(websocket, username=username, connection_id=connection_id)
            log_exception_once(logger, "error", "Failed to open connection", exc=e, context=context.to_dict())
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="user store unavailable")
            return

        await _handle_websocket_message_loop(websocket, session)
    finally:
        try:
            # Teardown runs to completion even if the handler task is cancelled
            await asyncio.shield(session.close())
        finally:
            clear_request_context()
