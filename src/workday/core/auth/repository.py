"""Auth repository protocol for database operations."""

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from workday.core.auth.types import User
from workday.core.orgs.types import (
    Organization,
    OrgInvite,
    OrgMember,
    OrgMemberProfile,
    OrgMemberStatus,
    OrgRole,
    OrgSummary,
    PendingInvite,
)
from workday.core.workspaces.types import (
    Membership,
    Workspace,
    WorkspaceMember,
    WorkspaceRole,
    WorkspaceType,
)


@runtime_checkable
class AuthRepository(Protocol):
    """Protocol for the relational store behind access control.

    Implementations provide actual database access (PostgreSQL, in-memory).
    Every statement is expected to be atomic on its own; callers never assume
    that two calls share a transaction unless they run inside `transaction()`.
    """

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group the enclosed calls into one transaction where supported.

        Stores without multi-statement transactions return a no-op context,
        so callers must keep each write idempotent either way.
        """
        ...

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address, compared case-insensitively."""
        ...

    async def create_user(self, email: str, name: str, password_hash: str) -> User:
        """Create a new user.

        Raises:
            Conflict: If the email is already registered.
        """
        ...

    async def set_user_plan(self, user_id: UUID, plan_key: str) -> None:
        """Assign a subscription plan key to a user."""
        ...

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        password_hash: str | None = None,
    ) -> User | None:
        """Overwrite the given profile fields; None leaves a field unchanged.

        Returns:
            The updated user, or None if no such user exists.

        Raises:
            Conflict: If the new email belongs to another user.
        """
        ...

    # Workspace operations
    async def get_workspace(self, workspace_id: UUID) -> Workspace | None:
        """Get workspace by ID."""
        ...

    async def create_workspace(
        self,
        name: str,
        type: WorkspaceType,
        org_id: UUID | None = None,
        is_default: bool = False,
    ) -> Workspace:
        """Create a new workspace."""
        ...

    async def list_org_workspaces(self, org_id: UUID) -> list[Workspace]:
        """Get all workspaces owned by an organization, oldest first."""
        ...

    async def get_default_org_workspace(self, org_id: UUID) -> Workspace | None:
        """Get the organization's default workspace, if any."""
        ...

    # Membership operations
    async def get_membership(self, user_id: UUID, workspace_id: UUID) -> Membership | None:
        """Get user's membership in a workspace."""
        ...

    async def list_memberships(self, user_id: UUID) -> list[tuple[Membership, Workspace]]:
        """Get all memberships of a user, ordered by workspace creation then id."""
        ...

    async def add_membership(
        self,
        user_id: UUID,
        workspace_id: UUID,
        role: WorkspaceRole,
    ) -> Membership:
        """Insert a membership if absent; an existing row is returned unchanged."""
        ...

    async def remove_membership(self, user_id: UUID, workspace_id: UUID) -> bool:
        """Delete a membership. Returns True if a row was removed."""
        ...

    async def list_workspace_members(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """Get the workspace roster ordered by member name."""
        ...

    # Organization operations
    async def get_org(self, org_id: UUID) -> Organization | None:
        """Get organization by ID."""
        ...

    async def get_org_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        ...

    async def create_org(self, name: str, slug: str, created_by: UUID) -> Organization:
        """Create a new organization.

        Raises:
            Conflict: If the slug is already taken.
        """
        ...

    async def list_orgs_for_user(self, user_id: UUID) -> list[OrgSummary]:
        """Get organizations where the user is an active member."""
        ...

    async def get_org_member(self, org_id: UUID, user_id: UUID) -> OrgMember | None:
        """Get user's membership in an organization."""
        ...

    async def get_org_owner(self, org_id: UUID) -> OrgMember | None:
        """Get the earliest active owner of an organization."""
        ...

    async def add_org_member(self, org_id: UUID, user_id: UUID, role: OrgRole) -> OrgMember:
        """Insert an active org membership if absent; existing rows are kept."""
        ...

    async def upsert_org_member(
        self,
        org_id: UUID,
        user_id: UUID,
        role: OrgRole,
        status: OrgMemberStatus = OrgMemberStatus.ACTIVE,
    ) -> OrgMember:
        """Insert an org membership, or overwrite role and status if present."""
        ...

    async def list_org_members(self, org_id: UUID) -> list[OrgMemberProfile]:
        """Get the org roster ordered by member name."""
        ...

    # Invite operations
    async def create_invite(
        self,
        org_id: UUID,
        email: str,
        role: OrgRole,
        token: str,
        expires_at: datetime,
    ) -> OrgInvite:
        """Create an organization invite."""
        ...

    async def get_invite_by_token(self, token: str) -> OrgInvite | None:
        """Look up an invite by its token."""
        ...

    async def list_org_invites(self, org_id: UUID) -> list[OrgInvite]:
        """Get all invites of an organization, newest first."""
        ...

    async def list_pending_invites_for_email(
        self, email: str, now: datetime
    ) -> list[PendingInvite]:
        """Get unaccepted, unexpired invites addressed to an email, newest first."""
        ...

    async def mark_invite_accepted(self, invite_id: UUID, accepted_at: datetime) -> bool:
        """Stamp accepted_at where it is still null. Returns True if stamped."""
        ...

    # Usage counts
    async def count_personal_workspaces(self, user_id: UUID) -> int:
        """Count personal workspaces the user is a member of."""
        ...

    async def count_active_org_memberships(self, user_id: UUID) -> int:
        """Count organizations where the user is an active member."""
        ...

    async def count_org_workspaces(self, org_id: UUID) -> int:
        """Count workspaces owned by an organization."""
        ...

    async def count_active_org_members(self, org_id: UUID) -> int:
        """Count active members of an organization."""
        ...

    async def count_pending_invites(self, org_id: UUID, now: datetime) -> int:
        """Count unaccepted, unexpired invites of an organization."""
        ...
