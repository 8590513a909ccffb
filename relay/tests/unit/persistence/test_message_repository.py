"""Tests for MessageRepository ordering, hydration and isolation."""

from datetime import timedelta

import pytest

from relay.models.message import Message
from relay.persistence.repositories import MessageRepository, UserRepository


class TestMessageRepository:
    @pytest.fixture
    def users(self, database_manager):
        return UserRepository(database_manager)

    @pytest.fixture
    def repository(self, database_manager):
        return MessageRepository(database_manager)

    @pytest.mark.asyncio
    async def test_create_returns_hydrated_message(self, users, repository):
        alice = await users.create("alice")

        message = await repository.create("hi", "general", alice)

        assert message.id is not None
        assert message.content == "hi"
        assert message.room == "general"
        assert message.sender.id == alice.id
        assert message.sender.username == "alice"

    @pytest.mark.asyncio
    async def test_history_preserves_submission_order(self, users, repository):
        alice = await users.create("alice")
        bob = await users.create("bob")

        first = await repository.create("one", "general", alice)
        second = await repository.create("two", "general", bob)
        third = await repository.create("three", "general", alice)

        history = await repository.list_by_room("general")

        assert [m.id for m in history] == [first.id, second.id, third.id]
        assert [m.sender.username for m in history] == ["alice", "bob", "alice"]
        assert all(a.created_at <= b.created_at for a, b in zip(history, history[1:]))

    @pytest.mark.asyncio
    async def test_unknown_room_has_empty_history(self, repository):
        assert await repository.list_by_room("nowhere") == []

    @pytest.mark.asyncio
    async def test_rooms_are_isolated(self, users, repository):
        alice = await users.create("alice")
        await repository.create("for a", "A", alice)
        await repository.create("for b", "B", alice)

        assert [m.content for m in await repository.list_by_room("A")] == ["for a"]
        assert [m.content for m in await repository.list_by_room("B")] == ["for b"]

    @pytest.mark.asyncio
    async def test_created_at_never_goes_backwards(self, users, repository):
        alice = await users.create("alice")
        first = await repository.create("one", "general", alice)
        # Simulate the wall clock stepping back after the first insert
        future = first.created_at.replace(tzinfo=None) + timedelta(hours=1)
        repository._last_created_at = future

        second = await repository.create("two", "general", alice)

        assert second.created_at.replace(tzinfo=None) == future
        history = await repository.list_by_room("general")
        assert [m.content for m in history] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_missing_sender_resolves_to_unknown(self, database_manager, repository):
        async with database_manager.get_session_maker()() as session:
            session.add(
                Message(
                    content="orphan",
                    room="general",
                    sender_id="00000000-0000-0000-0000-000000000000",
                    created_at=repository._next_created_at(),
                )
            )
            await session.commit()

        history = await repository.list_by_room("general")

        assert len(history) == 1
        assert history[0].sender.id is None
        assert history[0].sender.username == "unknown"

    @pytest.mark.asyncio
    async def test_wire_format(self, users, repository):
        alice = await users.create("alice")
        message = await repository.create("hi", "general", alice)

        wire = message.to_wire()

        assert set(wire) == {"id", "content", "room", "createdAt", "sender"}
        assert wire["createdAt"].endswith("Z")
        assert wire["sender"] == {"id": alice.id, "username": "alice"}
