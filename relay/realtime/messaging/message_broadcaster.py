"""
Message broadcasting for connection management.

This module provides room-scoped and global broadcasting with concurrent
delivery and per-broadcast delivery statistics.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any

from ...structured_logging.enhanced_logging_config import get_logger

if TYPE_CHECKING:
    from ..room_subscription_manager import RoomSubscriptionManager

logger = get_logger(__name__)


class MessageBroadcaster:
    """
    Broadcasts events to rooms and globally.

    Room broadcasts reach exactly the connections subscribed to that room;
    global broadcasts reach every connection passed in by the caller.
    """

    def __init__(
        self,
        room_manager: "RoomSubscriptionManager",
        send_personal_message_callback: Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]],
    ) -> None:
        """
        Initialize the message broadcaster.

        Args:
            room_manager: RoomSubscriptionManager instance
            send_personal_message_callback: Coroutine delivering one event to one connection id
        """
        self.room_manager = room_manager
        self.send_personal_message = send_personal_message_callback

    async def _deliver(self, targets: list[str], event: dict[str, Any], stats: dict[str, Any]) -> None:
        results = await asyncio.gather(
            *[self.send_personal_message(connection_id, event) for connection_id in targets],
            return_exceptions=True,
        )
        for connection_id, result in zip(targets, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "Error sending message in batch broadcast",
                    connection_id=connection_id,
                    event_type=event.get("event_type"),
                    error=str(result),
                )
                stats["delivery_details"][connection_id] = {"success": False, "error": str(result)}
                stats["failed_deliveries"] += 1
                continue
            stats["delivery_details"][connection_id] = result
            if result.get("success"):
                stats["successful_deliveries"] += 1
            else:
                stats["failed_deliveries"] += 1

    async def broadcast_to_room(self, room: str, event: dict[str, Any]) -> dict[str, Any]:
        """
        Broadcast an event to every connection subscribed to room.

        Args:
            room: Room key
            event: Event envelope to send

        Returns:
            dict: Broadcast delivery statistics
        """
        target_list = sorted(self.room_manager.get_room_subscribers(room))

        stats: dict[str, Any] = {
            "room_id": room,
            "total_targets": len(target_list),
            "successful_deliveries": 0,
            "failed_deliveries": 0,
            "delivery_details": {},
        }
        if target_list:
            await self._deliver(target_list, event, stats)

        logger.debug("broadcast_to_room delivery stats", room=room, stats=stats)
        return stats

    async def broadcast_global(self, event: dict[str, Any], connection_ids: Iterable[str]) -> dict[str, Any]:
        """
        Broadcast an event to every given connection.

        Args:
            event: Event envelope to send
            connection_ids: All currently open connection ids

        Returns:
            dict: Global broadcast delivery statistics
        """
        target_list = sorted(set(connection_ids))

        stats: dict[str, Any] = {
            "total_connections": len(target_list),
            "successful_deliveries": 0,
            "failed_deliveries": 0,
            "delivery_details": {},
        }
        if target_list:
            await self._deliver(target_list, event, stats)

        logger.debug("broadcast_global delivery stats", event_type=event.get("event_type"), stats=stats)
        return stats
