"""Organization API routes: orgs, rosters, org workspaces and invites."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field

from workday.core.orgs.invites import InviteService
from workday.core.orgs.service import OrganizationService
from workday.core.orgs.types import (
    InviteState,
    Organization,
    OrgInvite,
    OrgMemberProfile,
    OrgMemberStatus,
    OrgRole,
    OrgSummary,
    PendingInvite,
)
from workday.core.workspaces.types import Workspace
from workday.entrypoints.api.deps import get_invite_service, get_org_service, get_repo
from workday.entrypoints.api.middleware.entitlements import RequireSession
from workday.entrypoints.api.middleware.rate_limit import rate_limit
from workday.entrypoints.api.middleware.session_auth import set_workspace_cookie

router = APIRouter(prefix="/orgs", tags=["organizations"])

OrgServiceDep = Annotated[OrganizationService, Depends(get_org_service)]
InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]

INVITE_ACCEPT_LIMIT = rate_limit("invite-accept", limit=10, window_seconds=10 * 60)


class CreateOrgRequest(BaseModel):
    """Create organization request body."""

    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=100)


class OrgListResponse(BaseModel):
    """Organizations the caller actively belongs to."""

    orgs: list[OrgSummary]


class AddOrgMemberRequest(BaseModel):
    """Add org member request body."""

    user_id: UUID
    role: OrgRole = OrgRole.MEMBER


class OrgMemberResponse(BaseModel):
    """Org membership after a change."""

    user_id: UUID
    role: OrgRole
    status: OrgMemberStatus


class OrgMembersResponse(BaseModel):
    """Org roster."""

    members: list[OrgMemberProfile]


class CreateOrgWorkspaceRequest(BaseModel):
    """Create org workspace request body."""

    name: str = Field(..., min_length=1, max_length=200)


class OrgWorkspacesResponse(BaseModel):
    """Workspaces owned by an organization."""

    workspaces: list[Workspace]


class CreateInviteRequest(BaseModel):
    """Create invite request body."""

    email: EmailStr
    role: OrgRole = OrgRole.MEMBER


class InviteResponse(BaseModel):
    """Invite as shown to org members."""

    id: UUID
    email: str
    role: OrgRole
    token: str
    state: InviteState
    expires_at: datetime
    accepted_at: datetime | None = None
    created_at: datetime


class InviteListResponse(BaseModel):
    """Invites of an organization."""

    invites: list[InviteResponse]


class PendingInviteListResponse(BaseModel):
    """Invites addressed to the caller."""

    invites: list[PendingInvite]


class AcceptInviteRequest(BaseModel):
    """Accept invite request body."""

    token: str = Field(..., min_length=1, max_length=256)


class AcceptInviteResponse(BaseModel):
    """Result of accepting an invite."""

    org_id: UUID
    role: OrgRole
    workspace_id: UUID | None = None


def _invite_response(invite: OrgInvite) -> InviteResponse:
    return InviteResponse(
        id=invite.id,
        email=invite.email,
        role=invite.role,
        token=invite.token,
        state=invite.state(),
        expires_at=invite.expires_at,
        accepted_at=invite.accepted_at,
        created_at=invite.created_at,
    )


# Invites addressed to the caller
@router.get("/invites", response_model=PendingInviteListResponse)
async def list_my_invites(
    identity: RequireSession,
    service: InviteServiceDep,
) -> PendingInviteListResponse:
    """List unaccepted, unexpired invites addressed to the caller's email."""
    return PendingInviteListResponse(invites=await service.list_pending_invites(identity))


@router.post(
    "/invites/accept",
    response_model=AcceptInviteResponse,
    dependencies=[Depends(INVITE_ACCEPT_LIMIT)],
)
async def accept_invite(
    body: AcceptInviteRequest,
    request: Request,
    response: Response,
    identity: RequireSession,
    service: InviteServiceDep,
) -> AcceptInviteResponse:
    """Accept an invite and switch into the org's default workspace."""
    member = await service.accept_invite(identity, body.token)
    default_workspace = await get_repo(request).get_default_org_workspace(member.org_id)
    if default_workspace is not None:
        set_workspace_cookie(request, response, default_workspace.id)
    return AcceptInviteResponse(
        org_id=member.org_id,
        role=member.role,
        workspace_id=default_workspace.id if default_workspace else None,
    )


# Organizations
@router.get("", response_model=OrgListResponse)
async def list_orgs(identity: RequireSession, service: OrgServiceDep) -> OrgListResponse:
    """List organizations the caller actively belongs to."""
    return OrgListResponse(orgs=await service.list_orgs(identity.user_id))


@router.post("", response_model=Organization, status_code=201)
async def create_org(
    body: CreateOrgRequest,
    identity: RequireSession,
    service: OrgServiceDep,
) -> Organization:
    """Create an organization owned by the caller."""
    return await service.create_org(identity.user_id, body.name, body.slug)


@router.get("/{org_id}/members", response_model=OrgMembersResponse)
async def list_org_members(
    org_id: UUID,
    identity: RequireSession,
    service: OrgServiceDep,
) -> OrgMembersResponse:
    """List the org roster."""
    return OrgMembersResponse(members=await service.list_members(identity.user_id, org_id))


@router.post("/{org_id}/members", response_model=OrgMemberResponse, status_code=201)
async def add_org_member(
    org_id: UUID,
    body: AddOrgMemberRequest,
    identity: RequireSession,
    service: OrgServiceDep,
) -> OrgMemberResponse:
    """Add an existing user to the organization."""
    member = await service.add_member(identity.user_id, org_id, body.user_id, body.role)
    return OrgMemberResponse(user_id=member.user_id, role=member.role, status=member.status)


@router.get("/{org_id}/workspaces", response_model=OrgWorkspacesResponse)
async def list_org_workspaces(
    org_id: UUID,
    identity: RequireSession,
    service: OrgServiceDep,
) -> OrgWorkspacesResponse:
    """List the organization's workspaces."""
    return OrgWorkspacesResponse(
        workspaces=await service.list_workspaces(identity.user_id, org_id)
    )


@router.post("/{org_id}/workspaces", response_model=Workspace, status_code=201)
async def create_org_workspace(
    org_id: UUID,
    body: CreateOrgWorkspaceRequest,
    identity: RequireSession,
    service: OrgServiceDep,
) -> Workspace:
    """Create a workspace owned by the organization."""
    return await service.create_workspace(identity.user_id, org_id, body.name.strip())


@router.get("/{org_id}/invites", response_model=InviteListResponse)
async def list_org_invites(
    org_id: UUID,
    identity: RequireSession,
    service: InviteServiceDep,
) -> InviteListResponse:
    """List every invite of the organization with its derived state."""
    invites = await service.list_org_invites(identity.user_id, org_id)
    return InviteListResponse(invites=[_invite_response(invite) for invite in invites])


@router.post("/{org_id}/invites", response_model=InviteResponse, status_code=201)
async def create_invite(
    org_id: UUID,
    body: CreateInviteRequest,
    identity: RequireSession,
    service: InviteServiceDep,
) -> InviteResponse:
    """Invite an email address into the organization."""
    invite = await service.create_invite(identity.user_id, org_id, body.email, body.role)
    return _invite_response(invite)
