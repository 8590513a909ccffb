"""
Real-time communication API endpoint for the relay server.

This module exposes the WebSocket event channel at /ws?username=<name>.
"""

from fastapi import APIRouter, WebSocket, status

from ..realtime.websocket_handler import handle_websocket_connection
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

realtime_router = APIRouter(tags=["realtime"])


@realtime_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint for presence, room joins and chat messages."""
    container = getattr(websocket.app.state, "container", None)
    if container is None or not container.is_initialized:
        logger.error("WebSocket rejected: application container unavailable")
        await websocket.accept()
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    await handle_websocket_connection(websocket, websocket.query_params.get("username"), container)
