"""Organization service: creation, rosters and org workspaces."""

import re
from uuid import UUID

import structlog

from workday.core.auth.repository import AuthRepository
from workday.core.entitlements.engine import EntitlementEngine, enforce_limit
from workday.core.entitlements.features import LimitKey
from workday.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from workday.core.orgs.types import (
    ORG_MANAGER_ROLES,
    Organization,
    OrgMember,
    OrgMemberProfile,
    OrgMemberStatus,
    OrgRole,
    OrgSummary,
)
from workday.core.workspaces.types import Workspace, WorkspaceRole, WorkspaceType

logger = structlog.get_logger()

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lower-case a name and collapse every non-alphanumeric run into a dash."""
    return _SLUG_INVALID.sub("-", value.lower()).strip("-")


def workspace_role_for(org_role: OrgRole) -> WorkspaceRole:
    """Role granted in the org's default workspace for an org role."""
    return WorkspaceRole.ADMIN if org_role in ORG_MANAGER_ROLES else WorkspaceRole.MEMBER


class OrganizationService:
    """Organization-scoped operations.

    Reads require an active org membership; mutations additionally require
    the owner or admin role. Usage-increasing writes are checked against the
    actor's plan limits before anything is written.
    """

    def __init__(self, repo: AuthRepository, entitlements: EntitlementEngine) -> None:
        """Initialize the service.

        Args:
            repo: Store holding organizations and memberships.
            entitlements: Engine used to gate usage-increasing writes.
        """
        self._repo = repo
        self._entitlements = entitlements

    async def require_active_member(self, org_id: UUID, user_id: UUID) -> OrgMember:
        """Get the caller's org membership, rejecting absent or disabled ones.

        Raises:
            Forbidden: If the user is not an active member.
        """
        member = await self._repo.get_org_member(org_id, user_id)
        if member is None or not member.is_active:
            raise Forbidden()
        return member

    async def require_manager(self, org_id: UUID, user_id: UUID) -> OrgMember:
        """Get the caller's org membership, requiring owner or admin.

        Raises:
            Forbidden: If the user is not an active owner or admin.
        """
        member = await self.require_active_member(org_id, user_id)
        if member.role not in ORG_MANAGER_ROLES:
            raise Forbidden()
        return member

    async def create_org(self, user_id: UUID, name: str, slug: str | None = None) -> Organization:
        """Create an organization owned by the caller.

        Also creates the default "<name> General" workspace with the caller
        as admin.

        Raises:
            ValidationFailed: If the name or derived slug is empty.
            Conflict: If the slug is already taken.
            LimitReached: If the caller's organization limit is met.
        """
        name = name.strip()
        slug = slugify(slug or name)
        if not name or not slug:
            raise ValidationFailed("Organization name is required.")

        entitlements = await self._entitlements.compute(user_id)
        usage = await self._repo.count_active_org_memberships(user_id)
        enforce_limit(entitlements, LimitKey.ORGANIZATIONS, usage)

        if await self._repo.get_org_by_slug(slug) is not None:
            raise Conflict("Organization slug already exists.")

        org = await self._repo.create_org(name=name, slug=slug, created_by=user_id)
        await self._repo.add_org_member(org.id, user_id, OrgRole.OWNER)
        workspace = await self._repo.create_workspace(
            name=f"{name} General",
            type=WorkspaceType.ORGANIZATION,
            org_id=org.id,
            is_default=True,
        )
        await self._repo.add_membership(user_id, workspace.id, WorkspaceRole.ADMIN)

        logger.info("org_created", user_id=str(user_id), org_id=str(org.id), slug=slug)
        return org

    async def list_orgs(self, user_id: UUID) -> list[OrgSummary]:
        """List organizations where the user is an active member."""
        return await self._repo.list_orgs_for_user(user_id)

    async def list_members(self, actor_id: UUID, org_id: UUID) -> list[OrgMemberProfile]:
        """List the org roster. Active members only."""
        await self.require_active_member(org_id, actor_id)
        return await self._repo.list_org_members(org_id)

    async def list_workspaces(self, actor_id: UUID, org_id: UUID) -> list[Workspace]:
        """List the org's workspaces. Active members only."""
        await self.require_active_member(org_id, actor_id)
        return await self._repo.list_org_workspaces(org_id)

    async def add_member(
        self,
        actor_id: UUID,
        org_id: UUID,
        member_id: UUID,
        role: OrgRole = OrgRole.MEMBER,
    ) -> OrgMember:
        """Add a user to an organization directly, bypassing invites.

        An existing membership gets the new role and is re-activated. The
        user also joins the org's default workspace.

        Raises:
            Forbidden: If the actor is not an owner or admin.
            NotFound: If the user does not exist.
            LimitReached: If the actor's member limit is met.
        """
        await self.require_manager(org_id, actor_id)
        if await self._repo.get_user_by_id(member_id) is None:
            raise NotFound("User not found.")

        existing = await self._repo.get_org_member(org_id, member_id)
        if existing is None or not existing.is_active:
            entitlements = await self._entitlements.compute(actor_id)
            usage = await self._entitlements.org_seat_usage(org_id)
            enforce_limit(entitlements, LimitKey.ORG_MEMBERS, usage)

        member = await self._repo.upsert_org_member(org_id, member_id, role, OrgMemberStatus.ACTIVE)
        default_workspace = await self._repo.get_default_org_workspace(org_id)
        if default_workspace is not None:
            await self._repo.add_membership(member_id, default_workspace.id, workspace_role_for(role))

        logger.info(
            "org_member_added",
            actor_id=str(actor_id),
            org_id=str(org_id),
            member_id=str(member_id),
            role=role.value,
        )
        return member

    async def create_workspace(self, actor_id: UUID, org_id: UUID, name: str) -> Workspace:
        """Create a workspace owned by the organization.

        Raises:
            Forbidden: If the actor is not an owner or admin.
            LimitReached: If the actor's org workspace limit is met.
        """
        await self.require_manager(org_id, actor_id)

        entitlements = await self._entitlements.compute(actor_id)
        usage = await self._repo.count_org_workspaces(org_id)
        enforce_limit(entitlements, LimitKey.ORG_WORKSPACES_PER_ORG, usage)

        workspace = await self._repo.create_workspace(
            name=name,
            type=WorkspaceType.ORGANIZATION,
            org_id=org_id,
        )
        await self._repo.add_membership(actor_id, workspace.id, WorkspaceRole.ADMIN)

        logger.info(
            "org_workspace_created",
            actor_id=str(actor_id),
            org_id=str(org_id),
            workspace_id=str(workspace.id),
        )
        return workspace
