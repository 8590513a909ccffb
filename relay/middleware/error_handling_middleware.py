"""
Exception handlers for the relay HTTP surface.

Route handlers translate the errors they expect into responses themselves;
these handlers cover whatever escapes them.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..exceptions import RelayError, ValidationError
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from ..utils.error_logging import create_context_from_request

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something broke!"


def _status_for_relay_error(exc: RelayError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """
    Register exception handlers for the relay application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        """Handle relay errors that escaped a route handler."""
        status_code = _status_for_relay_error(exc)
        log_exception_once(
            logger,
            "error" if status_code >= 500 else "warning",
            "Unhandled relay error",
            exc=exc,
            context=create_context_from_request(request).to_dict(),
        )
        return JSONResponse(status_code=status_code, content={"success": False, "message": exc.user_friendly})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        context = create_context_from_request(request)
        logger.error(
            "Unhandled exception",
            error_type=type(exc).__name__,
            error=str(exc),
            context=context.to_dict(),
            exc_info=exc,
        )
        return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)

    logger.debug("Error handlers registered for FastAPI application")
