"""API middleware."""

from workday.entrypoints.api.middleware.csrf import CSRFMiddleware
from workday.entrypoints.api.middleware.entitlements import (
    get_entitlements,
    require_feature,
    resolve_active_workspace,
)
from workday.entrypoints.api.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    rate_limit,
)
from workday.entrypoints.api.middleware.security_headers import SecurityHeadersMiddleware
from workday.entrypoints.api.middleware.session_auth import get_session, require_session

__all__ = [
    # Sessions
    "get_session",
    "require_session",
    # Entitlements
    "get_entitlements",
    "require_feature",
    "resolve_active_workspace",
    # Abuse defenses
    "FixedWindowRateLimiter",
    "rate_limit",
    # Middleware
    "CSRFMiddleware",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
