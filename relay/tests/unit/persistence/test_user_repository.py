"""Tests for UserRepository against an in-memory SQLite store."""

import pytest

from relay.database import DatabaseManager
from relay.exceptions import DatabaseError, DuplicateKeyError
from relay.persistence.repositories import UserRepository


class TestUserRepository:
    @pytest.fixture
    def repository(self, database_manager):
        return UserRepository(database_manager)

    @pytest.mark.asyncio
    async def test_create_and_get_by_username(self, repository):
        created = await repository.create("alice")

        fetched = await repository.get_by_username("alice")

        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.username == "alice"

    @pytest.mark.asyncio
    async def test_get_unknown_username_returns_none(self, repository):
        assert await repository.get_by_username("nobody") is None

    @pytest.mark.asyncio
    async def test_username_lookup_is_exact(self, repository):
        await repository.create("Alice")
        assert await repository.get_by_username("alice") is None

    @pytest.mark.asyncio
    async def test_duplicate_username_raises_duplicate_key(self, repository):
        await repository.create("alice")

        with pytest.raises(DuplicateKeyError) as exc_info:
            await repository.create("alice")

        assert exc_info.value.details["table"] == "users"

    @pytest.mark.asyncio
    async def test_missing_schema_raises_database_error(self):
        manager = DatabaseManager("sqlite+aiosqlite://")
        repository = UserRepository(manager)
        try:
            with pytest.raises(DatabaseError):
                await repository.get_by_username("alice")
        finally:
            await manager.close()
