"""Double-submit CSRF protection."""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from workday.core.auth.tokens import generate_csrf_token, tokens_match

logger = structlog.get_logger()

CSRF_COOKIE = "workday_csrf"
CSRF_HEADER = "x-csrf-token"
SAFE_METHODS = frozenset({"GET", "HEAD"})
UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CSRFMiddleware(BaseHTTPMiddleware):
    """Reject state-changing API requests whose header does not echo the cookie.

    The cookie is client-readable so the frontend can copy it into the
    ``X-CSRF-Token`` header. It is set on the first GET or HEAD without one
    and never rotated afterwards. Rejection happens before routing, so no
    handler or authentication code runs for a forged request.
    """

    def __init__(self, app: ASGIApp, secure: bool = False, path_prefix: str = "/api") -> None:
        """Initialize CSRF middleware.

        Args:
            app: The ASGI application.
            secure: Mark the cookie Secure (production).
            path_prefix: Only paths under this prefix are checked.
        """
        super().__init__(app)
        self.secure = secure
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Check the token on unsafe methods, issue one on safe methods."""
        method = request.method.upper()
        cookie_token = request.cookies.get(CSRF_COOKIE)

        if method in UNSAFE_METHODS and request.url.path.startswith(self.path_prefix):
            if not tokens_match(cookie_token, request.headers.get(CSRF_HEADER)):
                logger.warning("csrf_rejected", method=method, path=request.url.path)
                return JSONResponse(
                    status_code=403,
                    content={"error": "CSRF token missing or invalid."},
                )

        response = await call_next(request)

        if not cookie_token and method in SAFE_METHODS:
            response.set_cookie(
                CSRF_COOKIE,
                generate_csrf_token(),
                path="/",
                httponly=False,
                samesite="strict",
                secure=self.secure,
            )
        return response
