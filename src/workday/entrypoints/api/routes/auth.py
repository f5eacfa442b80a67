"""Auth API routes for registration, login, logout and the current identity."""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field

from workday.core.auth.service import AuthService
from workday.core.auth.types import SessionIdentity, User
from workday.entrypoints.api.deps import get_auth_service
from workday.entrypoints.api.middleware.rate_limit import rate_limit
from workday.entrypoints.api.middleware.session_auth import (
    clear_session_cookie,
    get_session,
    get_session_user,
    set_session_cookie,
    set_workspace_cookie,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])

LOGIN_LIMIT = rate_limit("login", limit=10, window_seconds=10 * 60)
REGISTER_LIMIT = rate_limit("register", limit=5, window_seconds=15 * 60)


# Request/Response models
class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


class RegisterRequest(BaseModel):
    """Registration request body."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=256)
    name: str = Field(..., min_length=1, max_length=200)
    workspace_name: str | None = Field(default=None, max_length=200)


class UserResponse(BaseModel):
    """Public user fields."""

    id: UUID
    email: str
    name: str
    is_admin: bool = False
    plan_key: str = "free"


class AuthResponse(BaseModel):
    """Response for login and registration."""

    user: UserResponse
    workspace_id: UUID | None = None


class MeResponse(BaseModel):
    """Current session identity; user is null when signed out."""

    user: UserResponse | None = None


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        is_admin=user.is_admin,
        plan_key=user.plan_key,
    )


def _start_session(request: Request, response: Response, result: dict[str, Any]) -> AuthResponse:
    identity: SessionIdentity = result["identity"]
    set_session_cookie(request, response, identity)
    if result["workspace_id"] is not None:
        set_workspace_cookie(request, response, result["workspace_id"])
    return AuthResponse(user=user_response(result["user"]), workspace_id=result["workspace_id"])


@router.post("/register", response_model=AuthResponse, dependencies=[Depends(REGISTER_LIMIT)])
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Register a user with a personal workspace and sign them in.

    Args:
        body: Registration info.
        request: Current request.
        response: Response receiving the session cookies.
        service: Auth service.

    Returns:
        The new user and their personal workspace id.
    """
    result = await service.register(
        email=body.email,
        password=body.password,
        name=body.name,
        workspace_name=body.workspace_name,
    )
    return _start_session(request, response, result)


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(LOGIN_LIMIT)])
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Authenticate with email and password.

    Rate-limited per client IP before credentials are checked.

    Args:
        body: Login credentials.
        request: Current request.
        response: Response receiving the session cookies.
        service: Auth service.

    Returns:
        The user and the workspace the client starts in.
    """
    result = await service.login(email=body.email, password=body.password)
    return _start_session(request, response, result)


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    identity: Annotated[SessionIdentity | None, Depends(get_session)],
) -> dict[str, bool]:
    """Clear the session cookie."""
    clear_session_cookie(request, response)
    if identity is not None:
        logger.info("logout", user_id=str(identity.user_id))
    return {"ok": True}


@router.get("/me", response_model=MeResponse)
async def me(
    user: Annotated[User | None, Depends(get_session_user)],
) -> MeResponse:
    """Return the signed-in user, or null."""
    return MeResponse(user=user_response(user) if user else None)
