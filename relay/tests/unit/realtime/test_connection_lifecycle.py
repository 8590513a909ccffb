"""Tests for ConnectionSession state transitions and dispatch."""

import pytest

from relay.exceptions import DatabaseError
from relay.realtime.connection_lifecycle import ConnectionSession
from relay.realtime.message_pipeline import DropReason, MessagePipeline, SubmitStatus
from relay.realtime.presence_registry import PresenceRegistry
from relay.realtime.room_membership import RoomMembership
from relay.tests.fixtures.websocket import FakeWebSocket


@pytest.fixture
def presence(connection_manager):
    return PresenceRegistry(connection_manager)


@pytest.fixture
def make_session(connection_manager, user_directory, persistence, presence):
    membership = RoomMembership(connection_manager, persistence)
    pipeline = MessagePipeline(user_directory, persistence, connection_manager)

    def _make(username: str, websocket: FakeWebSocket | None = None, directory=None) -> ConnectionSession:
        connection_id = connection_manager.register(websocket or FakeWebSocket(), username)
        return ConnectionSession(
            username,
            connection_id,
            user_directory=directory or user_directory,
            presence=presence,
            membership=membership,
            pipeline=pipeline,
            connection_manager=connection_manager,
        )

    return _make


class TestConnectionSession:
    @pytest.mark.asyncio
    async def test_open_moves_to_active_and_registers_presence(self, make_session, presence, user_directory):
        session = make_session("alice")
        assert session.state == "connecting"

        user = await session.open()

        assert session.state == "active"
        assert presence.snapshot() == {"alice": session.connection_id}
        assert (await user_directory.lookup("alice")).id == user.id

    @pytest.mark.asyncio
    async def test_open_failure_leaves_session_connecting(self, make_session, presence):
        class FailingDirectory:
            async def resolve_or_create(self, username):
                raise DatabaseError("store down")

        session = make_session("alice", directory=FailingDirectory())

        with pytest.raises(DatabaseError):
            await session.open()

        assert session.state == "connecting"
        assert presence.snapshot() == {}

    @pytest.mark.asyncio
    async def test_join_room_sends_load_messages(self, make_session):
        websocket = FakeWebSocket()
        session = make_session("alice", websocket)
        await session.open()

        history = await session.dispatch({"type": "joinRoom", "data": "general"})

        assert history == []
        frame = websocket.events("loadMessages")[0]
        assert frame["data"] == {"room": "general", "messages": []}

    @pytest.mark.asyncio
    async def test_join_room_accepts_object_payload(self, make_session):
        websocket = FakeWebSocket()
        session = make_session("alice", websocket)
        await session.open()

        await session.dispatch({"type": "joinRoom", "data": {"room": "random"}})

        assert websocket.events("loadMessages")[0]["data"]["room"] == "random"

    @pytest.mark.asyncio
    async def test_message_defaults_sender_to_connection_user(self, make_session):
        websocket = FakeWebSocket()
        session = make_session("alice", websocket)
        await session.open()
        await session.dispatch({"type": "joinRoom", "data": "general"})

        result = await session.dispatch({"type": "message", "data": {"content": "hi", "room": "general"}})

        assert result.status is SubmitStatus.DELIVERED
        assert websocket.events("message")[0]["data"]["sender"]["username"] == "alice"

    @pytest.mark.asyncio
    async def test_message_from_unregistered_sender_is_dropped(self, make_session):
        websocket = FakeWebSocket()
        session = make_session("alice", websocket)
        await session.open()
        await session.dispatch({"type": "joinRoom", "data": "general"})

        result = await session.dispatch(
            {"type": "message", "data": {"content": "hi", "room": "general", "sender": "carol"}}
        )

        assert result.reason is DropReason.UNKNOWN_SENDER
        assert websocket.events("message") == []

    @pytest.mark.parametrize(
        "frame",
        [
            {"type": "dance", "data": {}},
            {"data": "general"},
            "not an object",
            {"type": "joinRoom", "data": ""},
            {"type": "joinRoom", "data": 5},
        ],
    )
    @pytest.mark.asyncio
    async def test_malformed_frames_are_ignored(self, make_session, frame):
        websocket = FakeWebSocket()
        session = make_session("alice", websocket)
        await session.open()
        sent_before = len(websocket.sent)

        assert await session.dispatch(frame) is None
        assert len(websocket.sent) == sent_before
        assert session.state == "active"

    @pytest.mark.asyncio
    async def test_malformed_message_payload_is_dropped(self, make_session):
        session = make_session("alice")
        await session.open()

        result = await session.dispatch({"type": "message", "data": "hi"})

        assert result.reason is DropReason.INVALID_PAYLOAD

    @pytest.mark.asyncio
    async def test_close_tears_down_presence_and_subscriptions(self, make_session, presence, connection_manager):
        session = make_session("alice")
        await session.open()
        await session.dispatch({"type": "joinRoom", "data": "general"})

        await session.close()

        assert session.state == "disconnected"
        assert presence.snapshot() == {}
        assert connection_manager.room_manager.get_room_subscribers("general") == set()
        assert connection_manager.get_connection_count() == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent_and_rejects_later_frames(self, make_session):
        session = make_session("alice")
        await session.open()
        await session.close()
        await session.close()

        assert await session.dispatch({"type": "joinRoom", "data": "general"}) is None

    @pytest.mark.asyncio
    async def test_close_before_open_skips_presence(self, make_session, presence):
        other = make_session("bob")
        await other.open()
        session = make_session("alice")

        await session.close()

        assert session.state == "disconnected"
        assert presence.snapshot() == {"bob": other.connection_id}

    @pytest.mark.asyncio
    async def test_other_members_receive_roster_on_disconnect(self, make_session):
        bob_ws = FakeWebSocket()
        bob = make_session("bob", bob_ws)
        await bob.open()
        alice = make_session("alice")
        await alice.open()

        await alice.close()

        assert bob_ws.events("userPresence")[-1]["data"]["users"] == {"bob": bob.connection_id}
