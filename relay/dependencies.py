"""
Dependency injection providers for the relay server.

Route handlers declare these with Depends() and receive services from the
ApplicationContainer stored on app.state.
"""

from fastapi import Depends, Request

from .async_persistence import AsyncPersistenceLayer
from .container import ApplicationContainer
from .realtime.connection_manager import ConnectionManager
from .realtime.presence_registry import PresenceRegistry
from .services.blob_store import LocalBlobStore
from .services.user_directory import UserDirectory


def get_container(request: Request) -> ApplicationContainer:
    """
    Get the application container from request state.

    This is the base dependency that all other dependencies use.
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError(
            "ApplicationContainer not found in app.state - ensure container is initialized in lifespan context"
        )
    return container


def _require(service, name: str):
    if service is None:
        raise RuntimeError(f"{name} not initialized in container")
    return service


def get_persistence(container: ApplicationContainer = Depends(get_container)) -> AsyncPersistenceLayer:
    return _require(container.persistence, "AsyncPersistenceLayer")


def get_user_directory(container: ApplicationContainer = Depends(get_container)) -> UserDirectory:
    return _require(container.user_directory, "UserDirectory")


def get_blob_store(container: ApplicationContainer = Depends(get_container)) -> LocalBlobStore:
    return _require(container.blob_store, "LocalBlobStore")


def get_connection_manager(container: ApplicationContainer = Depends(get_container)) -> ConnectionManager:
    return _require(container.connection_manager, "ConnectionManager")


def get_presence_registry(container: ApplicationContainer = Depends(get_container)) -> PresenceRegistry:
    return _require(container.presence_registry, "PresenceRegistry")
