"""
Schemas for frames received on the WebSocket event channel.

Client frames have the shape {"type": <event>, "data": <payload>}.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ClientEvent(BaseModel):
    """Envelope of a client frame."""

    type: str = Field(..., min_length=1, description="Event name, e.g. joinRoom or message")
    data: Any = Field(default=None, description="Event payload")


class JoinRoomPayload(BaseModel):
    """Payload of joinRoom; clients may send the bare room string or {"room": ...}."""

    room: str = Field(..., min_length=1)

    @classmethod
    def from_data(cls, data: Any) -> "JoinRoomPayload":
        if isinstance(data, str):
            return cls(room=data)
        return cls.model_validate(data)

    @field_validator("room")
    @classmethod
    def strip_room(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("room must not be blank")
        return v


class ChatMessagePayload(BaseModel):
    """
    Payload of a client message event.

    Content and room are validated by the message pipeline, which reports a
    tagged drop outcome instead of raising.
    """

    content: Any = None
    room: Any = None
    sender: str | None = None
