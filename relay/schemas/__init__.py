"""Pydantic schemas for the relay HTTP surface and event channel."""

from .message import UNKNOWN_SENDER_USERNAME, MessageRead, SenderRead
from .realtime import ChatMessagePayload, ClientEvent, JoinRoomPayload
from .user import RegisterUserRequest, RegisterUserResponse, UserRead

__all__ = [
    "UNKNOWN_SENDER_USERNAME",
    "ChatMessagePayload",
    "ClientEvent",
    "JoinRoomPayload",
    "MessageRead",
    "RegisterUserRequest",
    "RegisterUserResponse",
    "SenderRead",
    "UserRead",
]
