"""Workspace service: listing, creation, switching and rosters."""

from uuid import UUID

import structlog

from workday.core.auth.repository import AuthRepository
from workday.core.entitlements.engine import EntitlementEngine, enforce_limit
from workday.core.entitlements.features import LimitKey
from workday.core.exceptions import Forbidden, NotFound, ValidationFailed
from workday.core.orgs.types import OrgRole
from workday.core.workspaces.resolver import MembershipResolver, require_workspace_role
from workday.core.workspaces.types import (
    ActiveWorkspace,
    Membership,
    Workspace,
    WorkspaceMember,
    WorkspaceRole,
    WorkspaceType,
)

logger = structlog.get_logger()

# Org roles that may manage the roster of an organization workspace.
ORG_ROSTER_ROLES = frozenset({OrgRole.OWNER, OrgRole.ADMIN, OrgRole.SUPERVISOR})


class WorkspaceService:
    """Workspace-scoped operations, each re-deriving membership server-side."""

    def __init__(self, repo: AuthRepository, entitlements: EntitlementEngine) -> None:
        """Initialize the service.

        Args:
            repo: Store holding workspaces and memberships.
            entitlements: Engine used to gate usage-increasing writes.
        """
        self._repo = repo
        self._entitlements = entitlements
        self._resolver = MembershipResolver(repo)

    async def list_workspaces(
        self,
        user_id: UUID,
        workspace_hint: UUID | str | None = None,
    ) -> tuple[list[tuple[Membership, Workspace]], UUID | None]:
        """List the user's workspaces and the id of the active one."""
        memberships = await self._repo.list_memberships(user_id)
        active = await self._resolver.resolve_active(user_id, workspace_hint)
        return memberships, active.workspace.id if active else None

    async def create_workspace(
        self,
        user_id: UUID,
        name: str,
        type: WorkspaceType = WorkspaceType.PERSONAL,
        workspace_hint: UUID | str | None = None,
    ) -> Workspace:
        """Create a workspace with the caller as its admin.

        Personal workspaces are gated by the personal workspace limit.
        Organization workspaces are created in the organization of the active
        workspace and require the admin role there.

        Raises:
            Forbidden: If an organization workspace is requested without admin role.
            ValidationFailed: If the active workspace has no organization.
            LimitReached: If the relevant plan limit is already met.
        """
        entitlements = await self._entitlements.compute(user_id)
        org_id: UUID | None = None

        if type == WorkspaceType.PERSONAL:
            usage = await self._repo.count_personal_workspaces(user_id)
            enforce_limit(entitlements, LimitKey.PERSONAL_WORKSPACES, usage)
        else:
            active = await self._resolver.resolve_active(user_id, workspace_hint)
            if active is None or active.role != WorkspaceRole.ADMIN:
                raise Forbidden("Only admins can create workspaces.")
            org_id = active.workspace.org_id
            if org_id is None:
                raise ValidationFailed("Organization workspaces must belong to an organization.")
            usage = await self._repo.count_org_workspaces(org_id)
            enforce_limit(entitlements, LimitKey.ORG_WORKSPACES_PER_ORG, usage)

        workspace = await self._repo.create_workspace(name=name, type=type, org_id=org_id)
        await self._repo.add_membership(user_id, workspace.id, WorkspaceRole.ADMIN)

        logger.info(
            "workspace_created",
            user_id=str(user_id),
            workspace_id=str(workspace.id),
            type=type.value,
        )
        return workspace

    async def switch_workspace(self, user_id: UUID, workspace_id: UUID) -> ActiveWorkspace:
        """Validate a workspace switch; the caller then moves the hint cookie.

        Raises:
            Forbidden: If the user is not a member of the workspace.
        """
        membership = await self._repo.get_membership(user_id, workspace_id)
        workspace = await self._repo.get_workspace(workspace_id) if membership else None
        if membership is None or workspace is None:
            raise Forbidden("Not a member of that workspace.")

        logger.info("workspace_switched", user_id=str(user_id), workspace_id=str(workspace_id))
        return ActiveWorkspace(workspace=workspace, membership=membership)

    async def _get_workspace(self, workspace_id: UUID) -> Workspace:
        workspace = await self._repo.get_workspace(workspace_id)
        if workspace is None:
            raise NotFound("Workspace not found.")
        return workspace

    async def _can_read(self, user_id: UUID, workspace: Workspace) -> bool:
        if await self._repo.get_membership(user_id, workspace.id) is not None:
            return True
        if workspace.org_id is not None:
            org_member = await self._repo.get_org_member(workspace.org_id, user_id)
            return org_member is not None and org_member.is_active
        return False

    async def _can_manage(self, user_id: UUID, workspace: Workspace) -> bool:
        if workspace.org_id is not None:
            org_member = await self._repo.get_org_member(workspace.org_id, user_id)
            return (
                org_member is not None
                and org_member.is_active
                and org_member.role in ORG_ROSTER_ROLES
            )
        membership = await self._repo.get_membership(user_id, workspace.id)
        if membership is None:
            return False
        active = ActiveWorkspace(workspace=workspace, membership=membership)
        try:
            require_workspace_role(active, WorkspaceRole.ADMIN)
        except Forbidden:
            return False
        return True

    async def list_members(self, user_id: UUID, workspace_id: UUID) -> list[WorkspaceMember]:
        """List a workspace roster.

        Raises:
            NotFound: If the workspace does not exist.
            Forbidden: If the caller is neither a member nor an active org member.
        """
        workspace = await self._get_workspace(workspace_id)
        if not await self._can_read(user_id, workspace):
            raise Forbidden()
        return await self._repo.list_workspace_members(workspace_id)

    async def add_member(
        self,
        actor_id: UUID,
        workspace_id: UUID,
        member_id: UUID,
        role: WorkspaceRole = WorkspaceRole.MEMBER,
    ) -> Membership:
        """Add a user to a workspace; an existing membership is kept as is.

        Raises:
            NotFound: If the workspace or the user does not exist.
            Forbidden: If the actor may not manage the roster.
        """
        workspace = await self._get_workspace(workspace_id)
        if not await self._can_manage(actor_id, workspace):
            raise Forbidden()
        if await self._repo.get_user_by_id(member_id) is None:
            raise NotFound("User not found.")

        membership = await self._repo.add_membership(member_id, workspace_id, role)
        logger.info(
            "workspace_member_added",
            actor_id=str(actor_id),
            workspace_id=str(workspace_id),
            member_id=str(member_id),
            role=membership.role.value,
        )
        return membership

    async def remove_member(self, actor_id: UUID, workspace_id: UUID, member_id: UUID) -> bool:
        """Remove a user from a workspace.

        Raises:
            NotFound: If the workspace does not exist.
            Forbidden: If the actor may not manage the roster.
        """
        workspace = await self._get_workspace(workspace_id)
        if not await self._can_manage(actor_id, workspace):
            raise Forbidden()

        removed = await self._repo.remove_membership(member_id, workspace_id)
        logger.info(
            "workspace_member_removed",
            actor_id=str(actor_id),
            workspace_id=str(workspace_id),
            member_id=str(member_id),
            removed=removed,
        )
        return removed
