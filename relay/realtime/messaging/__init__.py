"""Message delivery components used by the ConnectionManager."""

from .message_broadcaster import MessageBroadcaster

__all__ = ["MessageBroadcaster"]
