"""Health check endpoint for the relay server."""

from fastapi import APIRouter, Depends

from ..dependencies import get_connection_manager, get_presence_registry
from ..realtime.connection_manager import ConnectionManager
from ..realtime.presence_registry import PresenceRegistry

health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health(
    connection_manager: ConnectionManager = Depends(get_connection_manager),
    presence: PresenceRegistry = Depends(get_presence_registry),
):
    return {
        "status": "ok",
        "online_users": len(presence.snapshot()),
        "connections": connection_manager.get_connection_count(),
    }
