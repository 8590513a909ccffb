"""
Presence registry for the relay.

A process-wide, in-memory mapping of username -> connection handle. The
registry is the single owner of that map: callers can only connect,
disconnect or take a snapshot, and every mutation broadcasts the full
roster as a userPresence event to every open connection.

Semantics:
- connect overwrites any existing entry for the username (last connection
  wins; a second tab silently takes over presence from the first).
- disconnect removes the username's entry even when a newer connection has
  already replaced the handle, unless guard_stale_disconnect is enabled, in
  which case only the handle that owns the entry can remove it.
- Rosters are best-effort snapshots; they may be stale by the time a
  client processes them.
"""

import asyncio
from typing import TYPE_CHECKING

from ..structured_logging.enhanced_logging_config import get_logger
from .envelope import build_event

if TYPE_CHECKING:
    from .connection_manager import ConnectionManager

logger = get_logger(__name__)

PRESENCE_EVENT = "userPresence"


class PresenceRegistry:
    """Single-owner registry of online usernames."""

    def __init__(self, connection_manager: "ConnectionManager", guard_stale_disconnect: bool = False) -> None:
        self._connection_manager = connection_manager
        self._guard_stale_disconnect = guard_stale_disconnect
        self._entries: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def connect(self, username: str, connection_id: str) -> dict[str, str]:
        """
        Record username as online on connection_id and broadcast the roster.

        Returns:
            dict[str, str]: The roster snapshot that was broadcast
        """
        async with self._lock:
            previous = self._entries.get(username)
            self._entries[username] = connection_id
            roster = dict(self._entries)

        if previous is not None and previous != connection_id:
            logger.info(
                "Presence overwritten by newer connection",
                username=username,
                previous_connection_id=previous,
                connection_id=connection_id,
            )
        else:
            logger.info("User online", username=username, connection_id=connection_id)
        await self._broadcast(roster)
        return roster

    async def disconnect(self, username: str, connection_id: str | None = None) -> bool:
        """
        Remove username from the roster and broadcast it.

        Args:
            username: Username to remove
            connection_id: Handle of the disconnecting connection; only consulted
                when guard_stale_disconnect is enabled

        Returns:
            bool: True if an entry was removed (and a roster broadcast sent)
        """
        async with self._lock:
            current = self._entries.get(username)
            if current is None:
                return False
            if self._guard_stale_disconnect and connection_id is not None and current != connection_id:
                logger.info(
                    "Ignoring disconnect of superseded connection",
                    username=username,
                    connection_id=connection_id,
                    current_connection_id=current,
                )
                return False
            del self._entries[username]
            roster = dict(self._entries)

        logger.info("User offline", username=username, connection_id=connection_id)
        await self._broadcast(roster)
        return True

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the current username -> connection id mapping."""
        return dict(self._entries)

    async def _broadcast(self, roster: dict[str, str]) -> None:
        event = build_event(PRESENCE_EVENT, {"users": roster})
        stats = await self._connection_manager.broadcast_global(event)
        logger.debug(
            "Presence broadcast",
            online_users=len(roster),
            delivered=stats["successful_deliveries"],
            failed=stats["failed_deliveries"],
        )
