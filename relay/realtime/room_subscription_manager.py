"""
Room subscription management for the relay.

Rooms are plain string keys: a room exists while it has subscribers and
needs no creation step. This module tracks which connections are
subscribed to which rooms, in both directions, so a disconnect can tear
down every subscription of a connection.
"""

from __future__ import annotations

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class RoomSubscriptionManager:
    """Tracks room -> connection ids and connection id -> rooms."""

    def __init__(self) -> None:
        # room -> set of connection_ids
        self.room_subscriptions: dict[str, set[str]] = {}
        # connection_id -> set of rooms
        self.connection_rooms: dict[str, set[str]] = {}

    def subscribe_to_room(self, connection_id: str, room: str) -> bool:
        """
        Subscribe a connection to a room.

        Returns:
            bool: True if this is a new subscription, False if it already existed
        """
        subscribers = self.room_subscriptions.setdefault(room, set())
        is_new = connection_id not in subscribers
        subscribers.add(connection_id)
        self.connection_rooms.setdefault(connection_id, set()).add(room)
        logger.debug("Connection subscribed to room", connection_id=connection_id, room=room, new=is_new)
        return is_new

    def unsubscribe_all(self, connection_id: str) -> set[str]:
        """
        Remove every subscription held by a connection.

        Returns:
            set[str]: The rooms the connection was removed from
        """
        rooms = self.connection_rooms.pop(connection_id, set())
        for room in rooms:
            subscribers = self.room_subscriptions.get(room)
            if subscribers is None:
                continue
            subscribers.discard(connection_id)
            if not subscribers:
                del self.room_subscriptions[room]
        if rooms:
            logger.debug("Connection removed from all rooms", connection_id=connection_id, rooms=sorted(rooms))
        return rooms

    def get_room_subscribers(self, room: str) -> set[str]:
        """Return a copy of the connection ids subscribed to room."""
        return self.room_subscriptions.get(room, set()).copy()

    def get_connection_rooms(self, connection_id: str) -> set[str]:
        """Return a copy of the rooms a connection is subscribed to."""
        return self.connection_rooms.get(connection_id, set()).copy()
