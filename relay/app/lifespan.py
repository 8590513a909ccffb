"""
Application lifecycle management for the relay server.

Startup builds and initializes the ApplicationContainer; shutdown closes
open connections and disposes the database engine.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..container import ApplicationContainer
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("relay.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    A container already placed on app.state (e.g. by tests) is reused
    instead of building a new one.
    """
    logger.info("Starting relay server")
    container = getattr(app.state, "container", None)
    if container is None:
        container = ApplicationContainer()
        app.state.container = container
    await container.initialize()
    logger.info("Relay server ready")

    try:
        yield
    finally:
        logger.info("Stopping relay server")
        await container.shutdown()
