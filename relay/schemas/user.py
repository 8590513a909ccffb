"""
Pydantic schemas for the user directory.

This module defines the read model for users and the request/response
bodies of the POST /user registration endpoint.
"""

from pydantic import BaseModel, ConfigDict, Field


class UserRead(BaseModel):
    """Schema for reading user data."""

    id: str = Field(..., description="Stable user identifier")
    username: str = Field(..., description="Unique username")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": {"id": "123e4567-e89b-12d3-a456-426614174000", "username": "alice"}},
    )


class RegisterUserRequest(BaseModel):
    """Body of POST /user. The username is validated by the endpoint to return the documented 400."""

    username: str | None = Field(default=None, description="Username to look up or create")


class RegisterUserResponse(BaseModel):
    """Successful lookup-or-create response."""

    success: bool = True
    user: UserRead
