"""Entitlements API route: resolved plan gates plus live usage."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from workday.core.entitlements.engine import EntitlementEngine
from workday.core.entitlements.types import Entitlements, UsageReport
from workday.core.exceptions import NotFound
from workday.core.workspaces.types import WorkspaceType
from workday.entrypoints.api.deps import get_entitlement_engine
from workday.entrypoints.api.middleware.entitlements import (
    ActiveWorkspaceDep,
    EntitlementsDep,
    RequireSession,
)

router = APIRouter(prefix="/entitlements", tags=["entitlements"])


class ActiveWorkspaceInfo(BaseModel):
    """Workspace the usage counts were scoped to."""

    id: UUID
    type: WorkspaceType
    org_id: UUID | None = None


class EntitlementsResponse(BaseModel):
    """Entitlements, usage and the resolved workspace."""

    entitlements: Entitlements
    usage: UsageReport
    workspace: ActiveWorkspaceInfo


@router.get("", response_model=EntitlementsResponse)
async def get_my_entitlements(
    identity: RequireSession,
    active: ActiveWorkspaceDep,
    entitlements: EntitlementsDep,
    engine: Annotated[EntitlementEngine, Depends(get_entitlement_engine)],
) -> EntitlementsResponse:
    """Return the caller's features, limits and usage in the active workspace.

    Accepts an optional ``workspace_id`` query parameter overriding the
    hint cookie.
    """
    if active is None:
        raise NotFound("Workspace not found.")

    usage = await engine.usage(identity.user_id, active)
    return EntitlementsResponse(
        entitlements=entitlements,
        usage=usage,
        workspace=ActiveWorkspaceInfo(
            id=active.workspace.id,
            type=active.workspace.type,
            org_id=active.workspace.org_id,
        ),
    )
