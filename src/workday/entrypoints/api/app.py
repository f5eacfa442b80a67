"""FastAPI application definition."""

from __future__ import annotations

import os

from fastapi import FastAPI

from workday import __version__
from workday.core.auth.session import SessionManager
from workday.core.logging import configure_logging

from .deps import Settings, lifespan
from .errors import register_exception_handlers
from .middleware.csrf import CSRFMiddleware
from .middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from .middleware.security_headers import SecurityHeadersMiddleware
from .routes import api_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Application settings, read from the environment when omitted.

    Returns:
        Configured FastAPI app. The store is attached on startup.

    Raises:
        RuntimeError: If production runs without AUTH_SECRET.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level, json_logs=settings.is_production)

    app = FastAPI(
        title="workday",
        description="Workspace access control and plan entitlements",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    app.state.settings = settings
    app.state.session_manager = SessionManager(settings.session_secret())
    app.state.rate_limiter = FixedWindowRateLimiter()

    register_exception_handlers(app)

    # Added innermost first: headers wrap CSRF rejections and rate-limit replies.
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.api_rate_limit_per_minute,
        enabled=settings.api_rate_limit_enabled,
    )
    app.add_middleware(CSRFMiddleware, secure=settings.is_production)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


def main() -> None:
    """Run the API with uvicorn; HOST and PORT come from the environment."""
    import uvicorn

    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )
