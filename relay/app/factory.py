"""
FastAPI application factory for the relay server.

This module handles FastAPI app creation, middleware configuration and
router registration.
"""

from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..api.health import health_router
from ..api.messages import message_router
from ..api.real_time import realtime_router
from ..api.uploads import upload_router
from ..api.users import user_router
from ..config import get_config
from ..middleware.correlation_middleware import CorrelationMiddleware
from ..middleware.error_handling_middleware import register_error_handlers
from ..structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging
from .lifespan import lifespan

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured relay application
    """
    config = get_config()
    setup_enhanced_logging(config.to_legacy_dict())

    app = FastAPI(
        title="Chat Relay API",
        description="Real-time chat relay with rooms, presence and file sharing",
        version=__version__,
        lifespan=lifespan,
    )

    logger.info(
        "CORS configuration",
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_credentials=config.cors.allow_credentials,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_credentials=config.cors.allow_credentials,
        allow_methods=config.cors.allow_methods,
        allow_headers=["*"],
    )
    # Added last so it is outermost and every response carries the correlation id
    app.add_middleware(CorrelationMiddleware)

    register_error_handlers(app)

    app.include_router(user_router)
    app.include_router(message_router)
    app.include_router(upload_router)
    app.include_router(health_router)
    app.include_router(realtime_router)

    upload_dir = Path(config.upload.directory)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(config.upload.public_path, StaticFiles(directory=upload_dir), name="uploads")

    return app
