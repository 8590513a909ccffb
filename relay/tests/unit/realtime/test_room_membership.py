"""Tests for RoomMembership join and history."""

from unittest.mock import AsyncMock

import pytest

from relay.exceptions import DatabaseError
from relay.realtime.room_membership import RoomMembership


class TestRoomMembership:
    @pytest.fixture
    def membership(self, connection_manager, persistence):
        return RoomMembership(connection_manager, persistence)

    @pytest.mark.asyncio
    async def test_join_unknown_room_subscribes_and_returns_empty_history(self, membership, connection_manager):
        history = await membership.join("c1", "general")

        assert history == []
        assert connection_manager.room_manager.get_room_subscribers("general") == {"c1"}

    @pytest.mark.asyncio
    async def test_join_returns_ordered_history(self, membership, persistence, user_directory):
        alice = await user_directory.resolve_or_create("alice")
        await persistence.save_message("m1", "general", alice)
        await persistence.save_message("m2", "general", alice)
        await persistence.save_message("elsewhere", "random", alice)

        history = await membership.join("c1", "general")

        assert [m.content for m in history] == ["m1", "m2"]
        assert all(m.sender.username == "alice" for m in history)

    @pytest.mark.asyncio
    async def test_connection_may_join_several_rooms(self, membership, connection_manager):
        await membership.join("c1", "general")
        await membership.join("c1", "random")

        assert connection_manager.room_manager.get_connection_rooms("c1") == {"general", "random"}

    @pytest.mark.asyncio
    async def test_subscription_survives_history_failure(self, connection_manager):
        persistence = AsyncMock()
        persistence.get_room_messages.side_effect = DatabaseError("store down")
        membership = RoomMembership(connection_manager, persistence)

        with pytest.raises(DatabaseError):
            await membership.join("c1", "general")

        assert connection_manager.room_manager.get_room_subscribers("general") == {"c1"}
