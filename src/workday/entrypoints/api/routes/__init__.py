"""API route modules."""

from fastapi import APIRouter

from workday.entrypoints.api.routes.auth import router as auth_router
from workday.entrypoints.api.routes.entitlements import router as entitlements_router
from workday.entrypoints.api.routes.orgs import router as orgs_router
from workday.entrypoints.api.routes.profile import router as profile_router
from workday.entrypoints.api.routes.subscriptions import router as subscriptions_router
from workday.entrypoints.api.routes.workspaces import router as workspaces_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(workspaces_router)
api_router.include_router(orgs_router)
api_router.include_router(entitlements_router)
api_router.include_router(subscriptions_router)

__all__ = ["api_router"]
