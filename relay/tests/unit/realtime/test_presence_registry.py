"""Tests for PresenceRegistry connect/disconnect/snapshot semantics."""

from unittest.mock import AsyncMock, Mock

import pytest

from relay.realtime.presence_registry import PresenceRegistry
from relay.tests.fixtures.websocket import FakeWebSocket


def _stats():
    return {"successful_deliveries": 0, "failed_deliveries": 0}


@pytest.fixture
def broadcasting_manager():
    manager = Mock()
    manager.broadcast_global = AsyncMock(return_value=_stats())
    return manager


class TestPresenceRegistry:
    @pytest.mark.asyncio
    async def test_connect_adds_entry_and_broadcasts(self, broadcasting_manager):
        registry = PresenceRegistry(broadcasting_manager)

        await registry.connect("alice", "c1")

        assert registry.snapshot() == {"alice": "c1"}
        event = broadcasting_manager.broadcast_global.await_args.args[0]
        assert event["event_type"] == "userPresence"
        assert event["data"] == {"users": {"alice": "c1"}}

    @pytest.mark.asyncio
    async def test_disconnect_removes_entry_and_broadcasts(self, broadcasting_manager):
        registry = PresenceRegistry(broadcasting_manager)
        await registry.connect("alice", "c1")
        await registry.connect("bob", "c2")

        removed = await registry.disconnect("alice", "c1")

        assert removed is True
        assert registry.snapshot() == {"bob": "c2"}
        event = broadcasting_manager.broadcast_global.await_args.args[0]
        assert event["data"] == {"users": {"bob": "c2"}}
        assert broadcasting_manager.broadcast_global.await_count == 3

    @pytest.mark.asyncio
    async def test_disconnect_of_absent_user_is_a_no_op(self, broadcasting_manager):
        registry = PresenceRegistry(broadcasting_manager)

        assert await registry.disconnect("ghost") is False
        broadcasting_manager.broadcast_global.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_last_connection_wins(self, broadcasting_manager):
        registry = PresenceRegistry(broadcasting_manager)

        await registry.connect("alice", "tab-1")
        await registry.connect("alice", "tab-2")

        assert registry.snapshot() == {"alice": "tab-2"}

    @pytest.mark.asyncio
    async def test_stale_disconnect_removes_newer_session_by_default(self, broadcasting_manager):
        """The first tab closing marks alice offline although tab-2 is still open."""
        registry = PresenceRegistry(broadcasting_manager)
        await registry.connect("alice", "tab-1")
        await registry.connect("alice", "tab-2")

        assert await registry.disconnect("alice", "tab-1") is True
        assert registry.snapshot() == {}

    @pytest.mark.asyncio
    async def test_guarded_stale_disconnect_keeps_newer_session(self, broadcasting_manager):
        registry = PresenceRegistry(broadcasting_manager, guard_stale_disconnect=True)
        await registry.connect("alice", "tab-1")
        await registry.connect("alice", "tab-2")

        assert await registry.disconnect("alice", "tab-1") is False
        assert registry.snapshot() == {"alice": "tab-2"}

        assert await registry.disconnect("alice", "tab-2") is True
        assert registry.snapshot() == {}

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self, broadcasting_manager):
        registry = PresenceRegistry(broadcasting_manager)
        await registry.connect("alice", "c1")

        registry.snapshot()["mallory"] = "c9"

        assert registry.snapshot() == {"alice": "c1"}

    @pytest.mark.asyncio
    async def test_roster_reaches_every_open_connection(self, connection_manager):
        alice_ws, bob_ws = FakeWebSocket(), FakeWebSocket()
        c1 = connection_manager.register(alice_ws, "alice")
        c2 = connection_manager.register(bob_ws, "bob")
        registry = PresenceRegistry(connection_manager)

        await registry.connect("alice", c1)
        await registry.connect("bob", c2)

        assert bob_ws.events("userPresence")[-1]["data"]["users"] == {"alice": c1, "bob": c2}
        assert len(alice_ws.events("userPresence")) == 2
