"""
Room history API endpoint for the relay server.

GET /messages/{room} returns the same ordered, hydrated history a client
receives on joinRoom, without subscribing to the room.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ..async_persistence import AsyncPersistenceLayer
from ..dependencies import get_persistence
from ..exceptions import DatabaseError
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_context_from_request

logger = get_logger(__name__)

message_router = APIRouter(tags=["messages"])


@message_router.get("/messages/{room}")
async def get_room_messages(
    room: str,
    request: Request,
    persistence: AsyncPersistenceLayer = Depends(get_persistence),
):
    """Return a room's history ordered by creation time; unknown rooms yield []."""
    try:
        messages = await persistence.get_room_messages(room)
    except DatabaseError as e:
        context = create_context_from_request(request)
        context.room = room
        logger.error("History request failed", error=str(e), context=context.to_dict())
        return PlainTextResponse(e.message, status_code=500)

    return [message.to_wire() for message in messages]
