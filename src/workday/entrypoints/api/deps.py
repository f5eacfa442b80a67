"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from workday.adapters.auth.postgres import PostgresAuthRepository
from workday.adapters.db.app_db import AppDatabase
from workday.adapters.db.memory import InMemoryStore
from workday.adapters.entitlements.database import DatabasePlanCatalog
from workday.core.auth.repository import AuthRepository
from workday.core.auth.service import AuthService
from workday.core.auth.session import DEV_SECRET_KEY, SessionManager
from workday.core.entitlements.engine import EntitlementEngine
from workday.core.entitlements.interfaces import PlanCatalog
from workday.core.entitlements.service import SubscriptionService, seed_default_catalog
from workday.core.orgs.invites import InviteService
from workday.core.orgs.service import OrganizationService
from workday.core.workspaces.service import WorkspaceService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()

MEMORY_DATABASE_URL = "memory://"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment.

    Keyword arguments override the corresponding environment variable,
    which keeps test setup free of process-wide env mutation.
    """

    def __init__(
        self,
        env: str | None = None,
        database_url: str | None = None,
        auth_secret: str | None = None,
        log_level: str | None = None,
        api_rate_limit_per_minute: int | None = None,
        api_rate_limit_enabled: bool | None = None,
    ) -> None:
        """Load settings from environment variables."""
        self.env = (env or os.getenv("WORKDAY_ENV", "development")).lower()
        self.database_url = database_url or os.getenv("DATABASE_URL", MEMORY_DATABASE_URL)
        self.auth_secret = auth_secret if auth_secret is not None else os.getenv("AUTH_SECRET", "")
        self.log_level = log_level or os.getenv("LOG_LEVEL", "INFO")
        self.api_rate_limit_per_minute = (
            api_rate_limit_per_minute
            if api_rate_limit_per_minute is not None
            else int(os.getenv("API_RATE_LIMIT_PER_MINUTE", "60"))
        )
        self.api_rate_limit_enabled = (
            api_rate_limit_enabled
            if api_rate_limit_enabled is not None
            else _env_flag("API_RATE_LIMIT_ENABLED", True)
        )

    @property
    def is_production(self) -> bool:
        """Whether cookies must be Secure and HSTS sent."""
        return self.env == "production"

    @property
    def uses_memory_store(self) -> bool:
        """Whether DATABASE_URL selects the in-memory store."""
        return self.database_url.startswith(MEMORY_DATABASE_URL)

    def session_secret(self) -> str:
        """Resolve the session signing key.

        Raises:
            RuntimeError: If production runs without a real AUTH_SECRET.
        """
        if self.auth_secret and self.auth_secret != DEV_SECRET_KEY:
            return self.auth_secret
        if self.is_production:
            raise RuntimeError("AUTH_SECRET must be set in production")
        return DEV_SECRET_KEY


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Store selection (PostgreSQL or in-memory) and schema setup
    - Seeding the default plan catalog
    """
    settings: Settings = app.state.settings
    app_db: AppDatabase | None = None
    repo: AuthRepository
    catalog: PlanCatalog

    if settings.uses_memory_store:
        store = InMemoryStore()
        repo, catalog = store, store
        logger.info("store_selected", store="memory")
    else:
        app_db = AppDatabase(settings.database_url)
        await app_db.connect()
        await app_db.init_schema()
        repo = PostgresAuthRepository(app_db)
        catalog = DatabasePlanCatalog(app_db)
        logger.info("store_selected", store="postgres")

    await seed_default_catalog(catalog)

    app.state.app_db = app_db
    app.state.repo = repo
    app.state.catalog = catalog

    yield

    if app_db is not None:
        await app_db.close()


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_repo(request: Request) -> AuthRepository:
    """Get the access-control store from app state.

    Raises:
        RuntimeError: If the application lifespan has not run.
    """
    repo: AuthRepository | None = getattr(request.app.state, "repo", None)
    if repo is None:
        raise RuntimeError("Store not initialized - application lifespan has not started")
    return repo


def get_catalog(request: Request) -> PlanCatalog:
    """Get the plan catalog from app state."""
    catalog: PlanCatalog = request.app.state.catalog
    return catalog


def get_session_manager(request: Request) -> SessionManager:
    """Get the session manager from app state."""
    manager: SessionManager = request.app.state.session_manager
    return manager


def get_entitlement_engine(request: Request) -> EntitlementEngine:
    """Build the entitlement engine over the current store."""
    return EntitlementEngine(get_repo(request), get_catalog(request))


def get_auth_service(request: Request) -> AuthService:
    """Get auth service from request context."""
    return AuthService(get_repo(request))


def get_workspace_service(request: Request) -> WorkspaceService:
    """Get workspace service from request context."""
    return WorkspaceService(get_repo(request), get_entitlement_engine(request))


def get_org_service(request: Request) -> OrganizationService:
    """Get organization service from request context."""
    return OrganizationService(get_repo(request), get_entitlement_engine(request))


def get_invite_service(request: Request) -> InviteService:
    """Get invite service from request context."""
    repo = get_repo(request)
    engine = get_entitlement_engine(request)
    return InviteService(repo, engine, OrganizationService(repo, engine))


def get_subscription_service(request: Request) -> SubscriptionService:
    """Get subscription service from request context."""
    return SubscriptionService(get_repo(request), get_catalog(request))
