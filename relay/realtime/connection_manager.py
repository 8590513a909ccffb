"""
Connection manager for relay real-time communication.

Owns the open WebSocket connections, keyed by an opaque connection id
(the "connection handle" clients see in presence rosters), and delegates
room subscriptions and fan-out to dedicated components.
"""

import asyncio
import uuid
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from ..structured_logging.enhanced_logging_config import get_logger
from .messaging.message_broadcaster import MessageBroadcaster
from .room_subscription_manager import RoomSubscriptionManager

logger = get_logger(__name__)


class ConnectionManager:
    """
    Registry of open WebSocket connections.

    Sends to a single connection are serialized by a per-connection lock so
    concurrent broadcasts never interleave frames on one socket.
    """

    def __init__(self, room_manager: RoomSubscriptionManager | None = None) -> None:
        self.active_websockets: dict[str, WebSocket] = {}
        self.connection_usernames: dict[str, str] = {}
        self.room_manager = room_manager or RoomSubscriptionManager()
        self.message_broadcaster = MessageBroadcaster(self.room_manager, self.send_personal_message)
        self._send_locks: dict[str, asyncio.Lock] = {}

    def register(self, websocket: WebSocket, username: str) -> str:
        """
        Register an accepted WebSocket and return its new connection id.

        Args:
            websocket: Accepted WebSocket
            username: Handshake username of the connection
        """
        connection_id = str(uuid.uuid4())
        self.active_websockets[connection_id] = websocket
        self.connection_usernames[connection_id] = username
        self._send_locks[connection_id] = asyncio.Lock()
        logger.info("WebSocket registered", connection_id=connection_id, username=username)
        return connection_id

    def unregister(self, connection_id: str) -> set[str]:
        """
        Forget a connection and tear down all of its room subscriptions.

        Returns:
            set[str]: Rooms the connection was subscribed to
        """
        self.active_websockets.pop(connection_id, None)
        username = self.connection_usernames.pop(connection_id, None)
        self._send_locks.pop(connection_id, None)
        rooms = self.room_manager.unsubscribe_all(connection_id)
        logger.info("WebSocket unregistered", connection_id=connection_id, username=username, rooms=sorted(rooms))
        return rooms

    def subscribe_to_room(self, connection_id: str, room: str) -> bool:
        return self.room_manager.subscribe_to_room(connection_id, room)

    def get_connection_count(self) -> int:
        return len(self.active_websockets)

    def get_connection_ids(self) -> list[str]:
        return list(self.active_websockets)

    @staticmethod
    def is_websocket_open(websocket: WebSocket) -> bool:
        return (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_personal_message(self, connection_id: str, event: dict[str, Any]) -> dict[str, Any]:
        """
        Send one event to one connection.

        Args:
            connection_id: Target connection id
            event: Event envelope

        Returns:
            dict: Delivery status with "success" and, on failure, "error"
        """
        websocket = self.active_websockets.get(connection_id)
        lock = self._send_locks.get(connection_id)
        if websocket is None or lock is None:
            return {"success": False, "error": "connection not found"}

        async with lock:
            if not self.is_websocket_open(websocket):
                return {"success": False, "error": "connection closed"}
            try:
                await websocket.send_json(event)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.warning(
                    "Failed to deliver event",
                    connection_id=connection_id,
                    event_type=event.get("event_type"),
                    error=str(e),
                )
                return {"success": False, "error": str(e)}
        return {"success": True}

    async def broadcast_to_room(self, room: str, event: dict[str, Any]) -> dict[str, Any]:
        """Broadcast an event to the subscribers of one room."""
        return await self.message_broadcaster.broadcast_to_room(room, event)

    async def broadcast_global(self, event: dict[str, Any]) -> dict[str, Any]:
        """Broadcast an event to every open connection."""
        return await self.message_broadcaster.broadcast_global(event, self.get_connection_ids())

    async def close_all(self, code: int = 1001, reason: str = "Server shutting down") -> None:
        """Close every open WebSocket; used on application shutdown."""
        for connection_id, websocket in list(self.active_websockets.items()):
            if not self.is_websocket_open(websocket):
                continue
            try:
                await websocket.close(code=code, reason=reason)
            except (RuntimeError, OSError) as e:
                logger.debug("Error closing WebSocket during shutdown", connection_id=connection_id, error=str(e))
        logger.info("All WebSocket connections closed", count=len(self.active_websockets))
