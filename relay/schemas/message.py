"""
Pydantic schemas for hydrated chat messages.

A hydrated message is a persisted message whose sender reference has been
resolved to a display username. Clients never receive a bare sender id.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer

UNKNOWN_SENDER_USERNAME = "unknown"


class SenderRead(BaseModel):
    """Resolved message sender."""

    id: str | None = Field(default=None, description="Sender user id, null when the user no longer resolves")
    username: str = Field(..., description="Sender display username")

    @classmethod
    def unknown(cls) -> "SenderRead":
        """Sentinel used when a message's sender cannot be resolved."""
        return cls(id=None, username=UNKNOWN_SENDER_USERNAME)


class MessageRead(BaseModel):
    """Hydrated message as delivered to clients."""

    id: int = Field(..., description="Message identifier")
    content: str = Field(..., description="Text content or file reference marker")
    room: str = Field(..., description="Room the message belongs to")
    created_at: datetime = Field(..., serialization_alias="createdAt", description="Persistence timestamp (UTC)")
    sender: SenderRead

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        # Stored naive UTC; emit explicit UTC ISO 8601
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.isoformat().replace("+00:00", "Z")

    def to_wire(self) -> dict:
        """Serialize for JSON delivery with client-facing field names."""
        return self.model_dump(mode="json", by_alias=True)
