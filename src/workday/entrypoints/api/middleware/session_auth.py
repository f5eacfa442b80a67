"""Cookie session authentication dependencies."""

from datetime import timedelta
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, Request, Response

from workday.core.auth.types import SessionIdentity, User
from workday.core.exceptions import Unauthenticated
from workday.entrypoints.api.deps import get_repo, get_session_manager, get_settings

logger = structlog.get_logger()

SESSION_COOKIE = "workday_session"
WORKSPACE_COOKIE = "workday_workspace"
WORKSPACE_COOKIE_TTL = timedelta(days=30)


def _is_production(request: Request) -> bool:
    return get_settings(request).is_production


async def get_session_user(request: Request) -> User | None:
    """Load the user behind the session cookie, if any.

    Any verification failure, or a token whose user no longer exists, is
    treated as no session.
    """
    cached = getattr(request.state, "session_user", None)
    if cached is not None:
        return cached  # type: ignore[no-any-return]

    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None

    manager = get_session_manager(request)
    identity = manager.verify(token)
    if identity is None:
        return None

    user = await get_repo(request).get_user_by_id(identity.user_id)
    if user is None:
        logger.info("session_user_missing", user_id=str(identity.user_id))
        return None

    request.state.session_user = user
    return user


async def get_session(
    user: Annotated[User | None, Depends(get_session_user)],
) -> SessionIdentity | None:
    """Resolve the caller's identity from the session cookie, or None."""
    if user is None:
        return None
    return SessionIdentity(user_id=user.id, email=user.email, name=user.name)


async def require_session(
    identity: Annotated[SessionIdentity | None, Depends(get_session)],
) -> SessionIdentity:
    """Require a valid session.

    Raises:
        Unauthenticated: If there is no valid session.
    """
    if identity is None:
        raise Unauthenticated()
    return identity


def get_workspace_hint(request: Request) -> str | None:
    """Preferred workspace id from the hint cookie; not trusted on its own."""
    return request.cookies.get(WORKSPACE_COOKIE)


def set_session_cookie(request: Request, response: Response, identity: SessionIdentity) -> None:
    """Issue a session token and store it in the HTTP-only session cookie."""
    manager = get_session_manager(request)
    response.set_cookie(
        SESSION_COOKIE,
        manager.issue(identity),
        max_age=int(manager.ttl.total_seconds()),
        path="/",
        httponly=True,
        samesite="lax",
        secure=_is_production(request),
    )


def clear_session_cookie(request: Request, response: Response) -> None:
    """Overwrite the session cookie with an empty, already expired value.

    Tokens are stateless, so a copy of the old token stays valid until it
    expires.
    """
    response.set_cookie(
        SESSION_COOKIE,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=_is_production(request),
    )


def set_workspace_cookie(request: Request, response: Response, workspace_id: UUID) -> None:
    """Move the active-workspace hint."""
    response.set_cookie(
        WORKSPACE_COOKIE,
        str(workspace_id),
        max_age=int(WORKSPACE_COOKIE_TTL.total_seconds()),
        path="/",
        httponly=True,
        samesite="lax",
        secure=_is_production(request),
    )
