"""Workspace API routes: list, create, switch and rosters."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from workday.core.workspaces.service import WorkspaceService
from workday.core.workspaces.types import Workspace, WorkspaceMember, WorkspaceRole, WorkspaceType
from workday.entrypoints.api.deps import get_workspace_service
from workday.entrypoints.api.middleware.entitlements import RequireSession
from workday.entrypoints.api.middleware.session_auth import (
    get_workspace_hint,
    set_workspace_cookie,
)

router = APIRouter(prefix="/workspaces", tags=["workspaces"])

WorkspaceServiceDep = Annotated[WorkspaceService, Depends(get_workspace_service)]


class WorkspaceSummary(BaseModel):
    """A workspace with the caller's role in it."""

    id: UUID
    name: str
    type: WorkspaceType
    role: WorkspaceRole
    org_id: UUID | None = None
    is_default: bool = False


class WorkspaceListResponse(BaseModel):
    """Caller's workspaces and the active one."""

    workspaces: list[WorkspaceSummary]
    active_workspace_id: UUID | None = None


class CreateWorkspaceRequest(BaseModel):
    """Create workspace request body."""

    name: str = Field(..., min_length=1, max_length=200)
    type: WorkspaceType = WorkspaceType.PERSONAL


class SwitchWorkspaceRequest(BaseModel):
    """Switch workspace request body."""

    workspace_id: UUID


class AddWorkspaceMemberRequest(BaseModel):
    """Add workspace member request body."""

    user_id: UUID
    role: WorkspaceRole = WorkspaceRole.MEMBER


class WorkspaceMembersResponse(BaseModel):
    """Workspace roster."""

    members: list[WorkspaceMember]


@router.get("", response_model=WorkspaceListResponse)
async def list_workspaces(
    request: Request,
    identity: RequireSession,
    service: WorkspaceServiceDep,
) -> WorkspaceListResponse:
    """List the caller's workspaces and resolve the active one."""
    memberships, active_id = await service.list_workspaces(
        identity.user_id, get_workspace_hint(request)
    )
    return WorkspaceListResponse(
        workspaces=[
            WorkspaceSummary(
                id=workspace.id,
                name=workspace.name,
                type=workspace.type,
                role=membership.role,
                org_id=workspace.org_id,
                is_default=workspace.is_default,
            )
            for membership, workspace in memberships
        ],
        active_workspace_id=active_id,
    )


@router.post("", response_model=Workspace, status_code=201)
async def create_workspace(
    body: CreateWorkspaceRequest,
    request: Request,
    response: Response,
    identity: RequireSession,
    service: WorkspaceServiceDep,
) -> Workspace:
    """Create a workspace and make it the active one."""
    workspace = await service.create_workspace(
        identity.user_id,
        name=body.name.strip(),
        type=body.type,
        workspace_hint=get_workspace_hint(request),
    )
    set_workspace_cookie(request, response, workspace.id)
    return workspace


@router.post("/switch")
async def switch_workspace(
    body: SwitchWorkspaceRequest,
    request: Request,
    response: Response,
    identity: RequireSession,
    service: WorkspaceServiceDep,
) -> dict[str, bool]:
    """Move the active-workspace hint to a workspace the caller belongs to."""
    active = await service.switch_workspace(identity.user_id, body.workspace_id)
    set_workspace_cookie(request, response, active.workspace.id)
    return {"ok": True}


@router.get("/{workspace_id}/members", response_model=WorkspaceMembersResponse)
async def list_workspace_members(
    workspace_id: UUID,
    identity: RequireSession,
    service: WorkspaceServiceDep,
) -> WorkspaceMembersResponse:
    """List a workspace roster."""
    members = await service.list_members(identity.user_id, workspace_id)
    return WorkspaceMembersResponse(members=members)


@router.post("/{workspace_id}/members", status_code=201)
async def add_workspace_member(
    workspace_id: UUID,
    body: AddWorkspaceMemberRequest,
    identity: RequireSession,
    service: WorkspaceServiceDep,
) -> dict[str, bool]:
    """Add a user to a workspace."""
    await service.add_member(identity.user_id, workspace_id, body.user_id, body.role)
    return {"ok": True}


@router.delete("/{workspace_id}/members")
async def remove_workspace_member(
    workspace_id: UUID,
    user_id: UUID,
    identity: RequireSession,
    service: WorkspaceServiceDep,
) -> dict[str, bool]:
    """Remove a user from a workspace; ``user_id`` is a query parameter."""
    removed = await service.remove_member(identity.user_id, workspace_id, user_id)
    return {"ok": True, "removed": removed}
