"""Rate limiting: fixed-window counters, a per-route dependency and middleware."""

import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from workday.core.exceptions import RateLimited

logger = structlog.get_logger()

# Paths never counted by the API middleware.
EXEMPT_PATHS = frozenset({"/health", "/healthz", "/ready"})


@dataclass
class RateLimitWindow:
    """Counter for one key inside its current window."""

    count: int
    reset_at: float  # epoch seconds


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit hit."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds

    def retry_after(self, now: float | None = None) -> int:
        """Whole seconds until the window closes, at least 1."""
        now = time.time() if now is None else now
        return max(1, math.ceil(self.reset_at - now))


class FixedWindowRateLimiter:
    """Process-local fixed-window counters keyed by arbitrary strings.

    Each key gets `limit` hits per window. The window starts at the first
    hit and is replaced wholesale once it has elapsed. The table is not
    shared across processes; counts near a window edge may be off by one
    under concurrent requests.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        max_entries: int = 10_000,
    ) -> None:
        """Initialize the limiter.

        Args:
            clock: Source of epoch seconds, replaceable in tests.
            max_entries: Table size that triggers a sweep of expired windows.
        """
        self._clock = clock
        self._max_entries = max_entries
        self._windows: dict[str, RateLimitWindow] = {}

    def now(self) -> float:
        """Current time on the limiter's clock."""
        return self._clock()

    def hit(self, key: str, limit: int, window_seconds: float) -> RateLimitResult:
        """Count one attempt against a key.

        Args:
            key: Rate-limit key, e.g. ``login:<ip>``.
            limit: Attempts allowed per window.
            window_seconds: Window length.

        Returns:
            Whether the attempt is allowed, with the remaining budget.
        """
        now = self._clock()
        window = self._windows.get(key)

        if window is None or window.reset_at <= now:
            if len(self._windows) >= self._max_entries:
                self._prune(now)
            window = RateLimitWindow(count=1, reset_at=now + window_seconds)
            self._windows[key] = window
            return RateLimitResult(True, limit, max(0, limit - 1), window.reset_at)

        if window.count >= limit:
            return RateLimitResult(False, limit, 0, window.reset_at)

        window.count += 1
        return RateLimitResult(True, limit, max(0, limit - window.count), window.reset_at)

    def _prune(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]
        logger.debug("rate_limit_pruned", removed=len(expired), remaining=len(self._windows))

    def reset(self, key: str | None = None) -> None:
        """Reset one key, or every key."""
        if key:
            self._windows.pop(key, None)
        else:
            self._windows.clear()


def get_client_ip(request: Request) -> str:
    """Best-effort client address used in rate-limit keys.

    First X-Forwarded-For entry, then X-Real-IP, then the socket peer.
    These headers are client-controlled unless a trusted proxy rewrites them.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(
    prefix: str,
    limit: int,
    window_seconds: float,
) -> Callable[[Request], Awaitable[None]]:
    """Dependency factory limiting a route per client IP.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit("login", 10, 600))])
        async def login(...):
            ...

    Args:
        prefix: Key prefix; the key is ``<prefix>:<ip>``.
        limit: Attempts allowed per window.
        window_seconds: Window length.
    """
    event = f"{prefix.replace('-', '_')}_rate_limited"

    async def check(request: Request) -> None:
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
        ip = get_client_ip(request)
        result = limiter.hit(f"{prefix}:{ip}", limit, window_seconds)
        if not result.allowed:
            logger.warning(event, ip=ip)
            raise RateLimited(
                reset_at=datetime.fromtimestamp(result.reset_at, UTC),
                retry_after=result.retry_after(limiter.now()),
            )

    return check


class RateLimitMiddleware(BaseHTTPMiddleware):
    """General API rate limit per client IP and path."""

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 60,
        enabled: bool = True,
    ) -> None:
        """Initialize rate limit middleware.

        Args:
            app: The ASGI application.
            requests_per_minute: Requests allowed per key per minute.
            enabled: Whether rate limiting is enabled.
        """
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request with rate limiting."""
        path = request.url.path
        if not self.enabled or path in EXEMPT_PATHS or not path.startswith("/api"):
            return await call_next(request)

        limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
        identifier = f"{get_client_ip(request)}:{path}"
        result = limiter.hit(identifier, self.requests_per_minute, 60)
        headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(int(result.reset_at)),
        }

        if not result.allowed:
            logger.warning("rate_limit_exceeded", identifier=identifier)
            retry_after = result.retry_after(limiter.now())
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests.", "retry_after": retry_after},
                headers={**headers, "Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
