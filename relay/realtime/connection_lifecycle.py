"""
Connection lifecycle for the relay.

Each WebSocket connection is driven by a ConnectionSession, the single
coordinator entry point for that connection. Its state machine is:

    connecting --activate--> active --disconnect--> disconnected
    connecting --disconnect--> disconnected

Frames are dispatched one at a time, so a connection's own events are
handled in the order they were received.
"""

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError
from statemachine import State, StateMachine

from ..exceptions import DatabaseError
from ..models.user import User
from ..schemas.message import MessageRead
from ..schemas.realtime import ChatMessagePayload, ClientEvent, JoinRoomPayload
from ..structured_logging.enhanced_logging_config import get_logger
from .envelope import build_event
from .message_pipeline import DropReason, SubmitResult

if TYPE_CHECKING:
    from ..services.user_directory import UserDirectory
    from .connection_manager import ConnectionManager
    from .message_pipeline import MessagePipeline
    from .presence_registry import PresenceRegistry
    from .room_membership import RoomMembership

logger = get_logger(__name__)

JOIN_ROOM_EVENT = "joinRoom"
MESSAGE_EVENT = "message"
LOAD_MESSAGES_EVENT = "loadMessages"


class ConnectionStateMachine(StateMachine):
    """Per-connection lifecycle states."""

    connecting = State("Connecting", initial=True)
    active = State("Active")
    disconnected = State("Disconnected", final=True)

    activate = connecting.to(active)
    disconnect = connecting.to(disconnected) | active.to(disconnected)

    def __init__(self, connection_id: str):
        # Set before super().__init__() because on_enter_state runs for the initial state
        self.connection_id = connection_id
        super().__init__()

    def on_enter_state(self, state: State, event=None, **kwargs) -> None:
        logger.debug(
            "Connection state transition",
            connection_id=self.connection_id,
            trigger_event=str(event) if event else "initial",
            to_state=state.id,
        )


class ConnectionSession:
    """Coordinates presence, rooms and messaging for one connection."""

    def __init__(
        self,
        username: str,
        connection_id: str,
        *,
        user_directory: "UserDirectory",
        presence: "PresenceRegistry",
        membership: "RoomMembership",
        pipeline: "MessagePipeline",
        connection_manager: "ConnectionManager",
    ) -> None:
        self.username = username
        self.connection_id = connection_id
        self.user_directory = user_directory
        self.presence = presence
        self.membership = membership
        self.pipeline = pipeline
        self.connection_manager = connection_manager
        self.user: User | None = None
        self.state_machine = ConnectionStateMachine(connection_id)

    @property
    def state(self) -> str:
        return self.state_machine.current_state.id

    @property
    def is_active(self) -> bool:
        return self.state == "active"

    async def open(self) -> User:
        """
        Resolve the handshake user and mark it online.

        Raises:
            ValidationError: If the username is blank
            DatabaseError: If the user cannot be resolved; the session stays connecting
        """
        self.user = await self.user_directory.resolve_or_create(self.username)
        await self.presence.connect(self.username, self.connection_id)
        self.state_machine.activate()
        logger.info("Connection active", username=self.username, user_id=self.user.id)
        return self.user

    async def dispatch(self, frame: Any) -> list[MessageRead] | SubmitResult | None:
        """
        Handle one client frame.

        Malformed frames and unknown event types are logged and ignored.

        Returns:
            The join history for joinRoom, the SubmitResult for message, None otherwise
        """
        if not self.is_active:
            logger.warning("Ignoring frame on inactive connection", state=self.state)
            return None

        try:
            event = frame if isinstance(frame, ClientEvent) else ClientEvent.model_validate(frame)
        except PydanticValidationError as e:
            logger.warning("Ignoring malformed frame", errors=e.errors(include_url=False))
            return None

        if event.type == JOIN_ROOM_EVENT:
            return await self._handle_join_room(event.data)
        if event.type == MESSAGE_EVENT:
            return await self._handle_message(event.data)

        logger.warning("Ignoring unknown event type", event_type=event.type)
        return None

    async def _handle_join_room(self, data: Any) -> list[MessageRead] | None:
        try:
            payload = JoinRoomPayload.from_data(data)
        except PydanticValidationError as e:
            logger.warning("Ignoring malformed joinRoom", errors=e.errors(include_url=False))
            return None

        try:
            messages = await self.membership.join(self.connection_id, payload.room)
        except DatabaseError as e:
            logger.error("Failed to load room history", room=payload.room, error=str(e))
            return None

        event = build_event(
            LOAD_MESSAGES_EVENT,
            {"room": payload.room, "messages": [message.to_wire() for message in messages]},
            room_id=payload.room,
        )
        await self.connection_manager.send_personal_message(self.connection_id, event)
        return messages

    async def _handle_message(self, data: Any) -> SubmitResult:
        try:
            payload = ChatMessagePayload.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Ignoring malformed message", errors=e.errors(include_url=False))
            return SubmitResult.dropped(DropReason.INVALID_PAYLOAD)

        sender = payload.sender or self.username
        return await self.pipeline.submit(sender, payload.room, payload.content)

    async def close(self) -> None:
        """
        Tear down the connection: drop its subscriptions and presence entry.

        Safe to call more than once.
        """
        if self.state == "disconnected":
            return
        was_active = self.is_active
        self.state_machine.disconnect()

        self.connection_manager.unregister(self.connection_id)
        if was_active:
            await self.presence.disconnect(self.username, self.connection_id)
        logger.info("Connection closed", username=self.username)
