"""
User registration API endpoint for the relay server.

POST /user looks a username up and creates it on first use. Responses use
the {success, ...} envelope clients already understand.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..dependencies import get_user_directory
from ..exceptions import DatabaseError
from ..schemas.user import RegisterUserRequest, RegisterUserResponse, UserRead
from ..services.user_directory import UserDirectory
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_context_from_request

logger = get_logger(__name__)

user_router = APIRouter(tags=["users"])


@user_router.post("/user", response_model=RegisterUserResponse)
async def register_user(
    request: Request,
    body: RegisterUserRequest | None = None,
    user_directory: UserDirectory = Depends(get_user_directory),
):
    """Look up or create a user by username."""
    username = body.username if body else None
    if not username or not username.strip():
        logger.warning("Registration rejected: username missing")
        return JSONResponse(status_code=400, content={"success": False, "message": "Username is required"})

    try:
        user = await user_directory.resolve_or_create(username)
    except DatabaseError as e:
        context = create_context_from_request(request)
        context.username = username
        logger.error("Registration failed", error=str(e), context=context.to_dict())
        return JSONResponse(status_code=500, content={"success": False, "message": e.message})

    return RegisterUserResponse(success=True, user=UserRead.model_validate(user))
