"""In-memory store for testing and demo mode."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from workday.core.auth.types import User
from workday.core.entitlements.types import SubscriptionPlan
from workday.core.exceptions import Conflict
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


class InMemoryStore:
    """Dict-backed implementation of AuthRepository and PlanCatalog.

    Useful for:
    - Unit and end-to-end tests without PostgreSQL
    - Local development with ``DATABASE_URL=memory://``

    Data lives for the lifetime of the process. Creation timestamps are
    strictly increasing so creation order is deterministic.
    """

    def __init__(self) -> None:
        """Initialize empty tables."""
        self.users: dict[UUID, User] = {}
        self.workspaces: dict[UUID, Workspace] = {}
        self.memberships: dict[tuple[UUID, UUID], Membership] = {}
        self.orgs: dict[UUID, Organization] = {}
        self.org_members: dict[tuple[UUID, UUID], OrgMember] = {}
        self.invites: dict[UUID, OrgInvite] = {}
        self.plans: dict[str, SubscriptionPlan] = {}
        self._last_ts: datetime | None = None

    def _now(self) -> datetime:
        now = datetime.now(UTC)
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + timedelta(microseconds=1)
        self._last_ts = now
        return now

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """No-op: single statements are already atomic on the event loop."""
        yield

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address, compared case-insensitively."""
        email = email.lower()
        for user in self.users.values():
            if user.email.lower() == email:
                return user
        return None

    async def create_user(self, email: str, name: str, password_hash: str) -> User:
        """Create a new user."""
        if await self.get_user_by_email(email) is not None:
            raise Conflict("An account with that email already exists.")
        user = User(
            id=uuid4(),
            email=email,
            name=name,
            password_hash=password_hash,
            created_at=self._now(),
        )
        self.users[user.id] = user
        return user

    async def set_user_plan(self, user_id: UUID, plan_key: str) -> None:
        """Assign a subscription plan key to a user."""
        user = self.users.get(user_id)
        if user is not None:
            self.users[user_id] = user.model_copy(update={"plan_key": plan_key})

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        password_hash: str | None = None,
    ) -> User | None:
        """Overwrite the given profile fields; None leaves a field unchanged."""
        user = self.users.get(user_id)
        if user is None:
            return None
        if email is not None:
            existing = await self.get_user_by_email(email)
            if existing is not None and existing.id != user_id:
                raise Conflict("An account with that email already exists.")
        changes = {"name": name, "email": email, "password_hash": password_hash}
        user = user.model_copy(update={k: v for k, v in changes.items() if v is not None})
        self.users[user_id] = user
        return user

    def set_user_admin(self, user_id: UUID, is_admin: bool = True) -> None:
        """Flip the global admin flag; admins are provisioned out of band."""
        user = self.users[user_id]
        self.users[user_id] = user.model_copy(update={"is_admin": is_admin})

    # Workspace operations
    async def get_workspace(self, workspace_id: UUID) -> Workspace | None:
        """Get workspace by ID."""
        return self.workspaces.get(workspace_id)

    async def create_workspace(
        self,
        name: str,
        type: WorkspaceType,
        org_id: UUID | None = None,
        is_default: bool = False,
    ) -> Workspace:
        """Create a new workspace."""
        workspace = Workspace(
            id=uuid4(),
            name=name,
            type=type,
            org_id=org_id,
            is_default=is_default,
            created_at=self._now(),
        )
        self.workspaces[workspace.id] = workspace
        return workspace

    async def list_org_workspaces(self, org_id: UUID) -> list[Workspace]:
        """Get all workspaces owned by an organization, oldest first."""
        return sorted(
            (w for w in self.workspaces.values() if w.org_id == org_id),
            key=lambda w: (w.created_at, str(w.id)),
        )

    async def get_default_org_workspace(self, org_id: UUID) -> Workspace | None:
        """Get the organization's default workspace, if any."""
        for workspace in await self.list_org_workspaces(org_id):
            if workspace.is_default:
                return workspace
        return None

    # Membership operations
    async def get_membership(self, user_id: UUID, workspace_id: UUID) -> Membership | None:
        """Get user's membership in a workspace."""
        return self.memberships.get((user_id, workspace_id))

    async def list_memberships(self, user_id: UUID) -> list[tuple[Membership, Workspace]]:
        """Get all memberships of a user, ordered by workspace creation then id."""
        pairs = [
            (membership, self.workspaces[workspace_id])
            for (member_id, workspace_id), membership in self.memberships.items()
            if member_id == user_id and workspace_id in self.workspaces
        ]
        return sorted(pairs, key=lambda pair: (pair[1].created_at, str(pair[1].id)))

    async def add_membership(
        self,
        user_id: UUID,
        workspace_id: UUID,
        role: WorkspaceRole,
    ) -> Membership:
        """Insert a membership if absent; an existing row is returned unchanged."""
        key = (user_id, workspace_id)
        if key not in self.memberships:
            self.memberships[key] = Membership(
                id=uuid4(),
                user_id=user_id,
                workspace_id=workspace_id,
                role=role,
                created_at=self._now(),
            )
        return self.memberships[key]

    async def remove_membership(self, user_id: UUID, workspace_id: UUID) -> bool:
        """Delete a membership. Returns True if a row was removed."""
        return self.memberships.pop((user_id, workspace_id), None) is not None

    async def list_workspace_members(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """Get the workspace roster ordered by member name."""
        roster = [
            WorkspaceMember(
                id=membership.id,
                user_id=membership.user_id,
                role=membership.role,
                name=self.users[membership.user_id].name,
                email=self.users[membership.user_id].email,
            )
            for membership in self.memberships.values()
            if membership.workspace_id == workspace_id and membership.user_id in self.users
        ]
        return sorted(roster, key=lambda m: (m.name, str(m.user_id)))

    # Organization operations
    async def get_org(self, org_id: UUID) -> Organization | None:
        """Get organization by ID."""
        return self.orgs.get(org_id)

    async def get_org_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        for org in self.orgs.values():
            if org.slug == slug:
                return org
        return None

    async def create_org(self, name: str, slug: str, created_by: UUID) -> Organization:
        """Create a new organization."""
        if await self.get_org_by_slug(slug) is not None:
            raise Conflict("Organization slug already exists.")
        org = Organization(
            id=uuid4(),
            name=name,
            slug=slug,
            created_by=created_by,
            created_at=self._now(),
        )
        self.orgs[org.id] = org
        return org

    async def list_orgs_for_user(self, user_id: UUID) -> list[OrgSummary]:
        """Get organizations where the user is an active member."""
        summaries = []
        for org in sorted(self.orgs.values(), key=lambda o: (o.created_at, str(o.id))):
            member = self.org_members.get((org.id, user_id))
            if member is None or not member.is_active:
                continue
            summaries.append(
                OrgSummary(
                    id=org.id,
                    name=org.name,
                    slug=org.slug,
                    role=member.role,
                    status=member.status,
                )
            )
        return summaries

    async def get_org_member(self, org_id: UUID, user_id: UUID) -> OrgMember | None:
        """Get user's membership in an organization."""
        return self.org_members.get((org_id, user_id))

    async def get_org_owner(self, org_id: UUID) -> OrgMember | None:
        """Get the earliest active owner of an organization."""
        owners = [
            m
            for m in self.org_members.values()
            if m.org_id == org_id and m.role == OrgRole.OWNER and m.is_active
        ]
        return min(owners, key=lambda m: (m.created_at, str(m.id)), default=None)

    async def add_org_member(self, org_id: UUID, user_id: UUID, role: OrgRole) -> OrgMember:
        """Insert an active org membership if absent; existing rows are kept."""
        key = (org_id, user_id)
        if key not in self.org_members:
            self.org_members[key] = OrgMember(
                id=uuid4(),
                org_id=org_id,
                user_id=user_id,
                role=role,
                status=OrgMemberStatus.ACTIVE,
                created_at=self._now(),
            )
        return self.org_members[key]

    async def upsert_org_member(
        self,
        org_id: UUID,
        user_id: UUID,
        role: OrgRole,
        status: OrgMemberStatus = OrgMemberStatus.ACTIVE,
    ) -> OrgMember:
        """Insert an org membership, or overwrite role and status if present."""
        key = (org_id, user_id)
        existing = self.org_members.get(key)
        if existing is None:
            member = await self.add_org_member(org_id, user_id, role)
            if member.status != status:
                member = member.model_copy(update={"status": status})
        else:
            member = existing.model_copy(update={"role": role, "status": status})
        self.org_members[key] = member
        return member

    async def list_org_members(self, org_id: UUID) -> list[OrgMemberProfile]:
        """Get the org roster ordered by member name."""
        roster = [
            OrgMemberProfile(
                id=member.id,
                user_id=member.user_id,
                role=member.role,
                status=member.status,
                name=self.users[member.user_id].name,
                email=self.users[member.user_id].email,
            )
            for member in self.org_members.values()
            if member.org_id == org_id and member.user_id in self.users
        ]
        return sorted(roster, key=lambda m: (m.name, str(m.user_id)))

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
        invite = OrgInvite(
            id=uuid4(),
            org_id=org_id,
            email=email,
            role=role,
            token=token,
            expires_at=expires_at,
            created_at=self._now(),
        )
        self.invites[invite.id] = invite
        return invite

    async def get_invite_by_token(self, token: str) -> OrgInvite | None:
        """Look up an invite by its token."""
        for invite in self.invites.values():
            if invite.token == token:
                return invite
        return None

    async def list_org_invites(self, org_id: UUID) -> list[OrgInvite]:
        """Get all invites of an organization, newest first."""
        invites = [i for i in self.invites.values() if i.org_id == org_id]
        return sorted(invites, key=lambda i: i.created_at, reverse=True)

    async def list_pending_invites_for_email(
        self, email: str, now: datetime
    ) -> list[PendingInvite]:
        """Get unaccepted, unexpired invites addressed to an email, newest first."""
        email = email.lower()
        pending = [
            PendingInvite(
                id=invite.id,
                org_id=invite.org_id,
                org_name=self.orgs[invite.org_id].name,
                role=invite.role,
                token=invite.token,
                expires_at=invite.expires_at,
                created_at=invite.created_at,
            )
            for invite in self.invites.values()
            if invite.email.lower() == email
            and invite.org_id in self.orgs
            and invite.accepted_at is None
            and invite.expires_at >= now
        ]
        return sorted(pending, key=lambda i: i.created_at, reverse=True)

    async def mark_invite_accepted(self, invite_id: UUID, accepted_at: datetime) -> bool:
        """Stamp accepted_at where it is still null. Returns True if stamped."""
        invite = self.invites.get(invite_id)
        if invite is None or invite.accepted_at is not None:
            return False
        self.invites[invite_id] = invite.model_copy(update={"accepted_at": accepted_at})
        return True

    # Usage counts
    async def count_personal_workspaces(self, user_id: UUID) -> int:
        """Count personal workspaces the user is a member of."""
        return sum(
            1
            for membership, workspace in await self.list_memberships(user_id)
            if workspace.type == WorkspaceType.PERSONAL
        )

    async def count_active_org_memberships(self, user_id: UUID) -> int:
        """Count organizations where the user is an active member."""
        return sum(1 for m in self.org_members.values() if m.user_id == user_id and m.is_active)

    async def count_org_workspaces(self, org_id: UUID) -> int:
        """Count workspaces owned by an organization."""
        return sum(1 for w in self.workspaces.values() if w.org_id == org_id)

    async def count_active_org_members(self, org_id: UUID) -> int:
        """Count active members of an organization."""
        return sum(1 for m in self.org_members.values() if m.org_id == org_id and m.is_active)

    async def count_pending_invites(self, org_id: UUID, now: datetime) -> int:
        """Count unaccepted, unexpired invites of an organization."""
        return sum(
            1
            for i in self.invites.values()
            if i.org_id == org_id and i.accepted_at is None and i.expires_at >= now
        )

    # Plan catalog operations
    async def get_plan(self, key: str) -> SubscriptionPlan | None:
        """Get a plan by key."""
        return self.plans.get(key)

    async def list_plans(self) -> list[SubscriptionPlan]:
        """List every plan ordered by monthly price."""
        return sorted(self.plans.values(), key=lambda p: (p.price_monthly, p.key))

    async def upsert_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        """Insert or replace a catalog row."""
        self.plans[plan.key] = plan
        return plan
