"""Repository modules for the async persistence layer."""

from .message_repository import MessageRepository
from .user_repository import UserRepository

__all__ = [
    "MessageRepository",
    "UserRepository",
]
