"""PostgreSQL implementation of AuthRepository."""

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg

from workday.adapters.db.app_db import AppDatabase, rows_affected
from workday.core.auth.types import User
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


class PostgresAuthRepository:
    """PostgreSQL implementation of auth repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group the enclosed calls into one database transaction."""
        return self._db.transaction()

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            password_hash=row["password_hash"],
            is_admin=row.get("is_admin", False),
            plan_key=row.get("plan_key") or "free",
            created_at=row["created_at"],
        )

    def _row_to_workspace(self, row: dict[str, Any]) -> Workspace:
        """Convert database row to Workspace model."""
        return Workspace(
            id=row["id"],
            name=row["name"],
            type=WorkspaceType(row["type"]),
            org_id=row.get("org_id"),
            is_default=row.get("is_default", False),
            created_at=row["created_at"],
        )

    def _row_to_membership(self, row: dict[str, Any]) -> Membership:
        """Convert database row to Membership model."""
        return Membership(
            id=row["id"],
            user_id=row["user_id"],
            workspace_id=row["workspace_id"],
            role=WorkspaceRole(row["role"]),
            created_at=row["created_at"],
        )

    def _row_to_org(self, row: dict[str, Any]) -> Organization:
        """Convert database row to Organization model."""
        return Organization(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            created_by=row["created_by"],
            created_at=row["created_at"],
        )

    def _row_to_org_member(self, row: dict[str, Any]) -> OrgMember:
        """Convert database row to OrgMember model."""
        return OrgMember(
            id=row["id"],
            org_id=row["org_id"],
            user_id=row["user_id"],
            role=OrgRole(row["role"]),
            status=OrgMemberStatus(row["status"]),
            created_at=row["created_at"],
        )

    def _row_to_invite(self, row: dict[str, Any]) -> OrgInvite:
        """Convert database row to OrgInvite model."""
        return OrgInvite(
            id=row["id"],
            org_id=row["org_id"],
            email=row["email"],
            role=OrgRole(row["role"]),
            token=row["token"],
            expires_at=row["expires_at"],
            accepted_at=row.get("accepted_at"),
            created_at=row["created_at"],
        )

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one("SELECT * FROM users WHERE id = $1", user_id)
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address, compared case-insensitively."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE LOWER(email) = LOWER($1)",
            email,
        )
        return self._row_to_user(row) if row else None

    async def create_user(self, email: str, name: str, password_hash: str) -> User:
        """Create a new user."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO users (email, name, password_hash)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                email,
                name,
                password_hash,
            )
        except asyncpg.UniqueViolationError:
            raise Conflict("An account with that email already exists.") from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_user(row)

    async def set_user_plan(self, user_id: UUID, plan_key: str) -> None:
        """Assign a subscription plan key to a user."""
        await self._db.execute("UPDATE users SET plan_key = $2 WHERE id = $1", user_id, plan_key)

    async def update_user(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        password_hash: str | None = None,
    ) -> User | None:
        """Overwrite the given profile fields; None leaves a field unchanged."""
        try:
            row = await self._db.fetch_one(
                """
                UPDATE users
                SET name = COALESCE($2, name),
                    email = COALESCE($3, email),
                    password_hash = COALESCE($4, password_hash)
                WHERE id = $1
                RETURNING *
                """,
                user_id,
                name,
                email,
                password_hash,
            )
        except asyncpg.UniqueViolationError:
            raise Conflict("An account with that email already exists.") from None
        return self._row_to_user(row) if row else None

    # Workspace operations
    async def get_workspace(self, workspace_id: UUID) -> Workspace | None:
        """Get workspace by ID."""
        row = await self._db.fetch_one("SELECT * FROM workspaces WHERE id = $1", workspace_id)
        return self._row_to_workspace(row) if row else None

    async def create_workspace(
        self,
        name: str,
        type: WorkspaceType,
        org_id: UUID | None = None,
        is_default: bool = False,
    ) -> Workspace:
        """Create a new workspace."""
        row = await self._db.fetch_one(
            """
            INSERT INTO workspaces (name, type, org_id, is_default)
            VALUES ($1, $2, $3, $4)
            RETURNING *
            """,
            name,
            type.value,
            org_id,
            is_default,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_workspace(row)

    async def list_org_workspaces(self, org_id: UUID) -> list[Workspace]:
        """Get all workspaces owned by an organization, oldest first."""
        rows = await self._db.fetch_all(
            "SELECT * FROM workspaces WHERE org_id = $1 ORDER BY created_at, id",
            org_id,
        )
        return [self._row_to_workspace(row) for row in rows]

    async def get_default_org_workspace(self, org_id: UUID) -> Workspace | None:
        """Get the organization's default workspace, if any."""
        row = await self._db.fetch_one(
            """
            SELECT * FROM workspaces
            WHERE org_id = $1 AND is_default = TRUE
            ORDER BY created_at, id
            LIMIT 1
            """,
            org_id,
        )
        return self._row_to_workspace(row) if row else None

    # Membership operations
    async def get_membership(self, user_id: UUID, workspace_id: UUID) -> Membership | None:
        """Get user's membership in a workspace."""
        row = await self._db.fetch_one(
            "SELECT * FROM memberships WHERE user_id = $1 AND workspace_id = $2",
            user_id,
            workspace_id,
        )
        return self._row_to_membership(row) if row else None

    async def list_memberships(self, user_id: UUID) -> list[tuple[Membership, Workspace]]:
        """Get all memberships of a user, ordered by workspace creation then id."""
        rows = await self._db.fetch_all(
            """
            SELECT m.id AS membership_id, m.user_id, m.workspace_id, m.role,
                   m.created_at AS membership_created_at,
                   w.id, w.name, w.type, w.org_id, w.is_default, w.created_at
            FROM memberships m
            JOIN workspaces w ON w.id = m.workspace_id
            WHERE m.user_id = $1
            ORDER BY w.created_at, w.id
            """,
            user_id,
        )
        return [
            (
                self._row_to_membership(
                    {
                        "id": row["membership_id"],
                        "user_id": row["user_id"],
                        "workspace_id": row["workspace_id"],
                        "role": row["role"],
                        "created_at": row["membership_created_at"],
                    }
                ),
                self._row_to_workspace(row),
            )
            for row in rows
        ]

    async def add_membership(
        self,
        user_id: UUID,
        workspace_id: UUID,
        role: WorkspaceRole,
    ) -> Membership:
        """Insert a membership if absent; an existing row is returned unchanged."""
        await self._db.execute(
            """
            INSERT INTO memberships (user_id, workspace_id, role)
            VALUES ($1, $2, $3)
            ON CONFLICT (user_id, workspace_id) DO NOTHING
            """,
            user_id,
            workspace_id,
            role.value,
        )
        membership = await self.get_membership(user_id, workspace_id)
        assert membership is not None, "membership must exist after insert"
        return membership

    async def remove_membership(self, user_id: UUID, workspace_id: UUID) -> bool:
        """Delete a membership. Returns True if a row was removed."""
        status = await self._db.execute(
            "DELETE FROM memberships WHERE user_id = $1 AND workspace_id = $2",
            user_id,
            workspace_id,
        )
        return rows_affected(status) > 0

    async def list_workspace_members(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """Get the workspace roster ordered by member name."""
        rows = await self._db.fetch_all(
            """
            SELECT m.id, m.user_id, m.role, u.name, u.email
            FROM memberships m
            JOIN users u ON u.id = m.user_id
            WHERE m.workspace_id = $1
            ORDER BY u.name, u.id
            """,
            workspace_id,
        )
        return [
            WorkspaceMember(
                id=row["id"],
                user_id=row["user_id"],
                role=WorkspaceRole(row["role"]),
                name=row["name"],
                email=row["email"],
            )
            for row in rows
        ]

    # Organization operations
    async def get_org(self, org_id: UUID) -> Organization | None:
        """Get organization by ID."""
        row = await self._db.fetch_one("SELECT * FROM organizations WHERE id = $1", org_id)
        return self._row_to_org(row) if row else None

    async def get_org_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        row = await self._db.fetch_one("SELECT * FROM organizations WHERE slug = $1", slug)
        return self._row_to_org(row) if row else None

    async def create_org(self, name: str, slug: str, created_by: UUID) -> Organization:
        """Create a new organization."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO organizations (name, slug, created_by)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                name,
                slug,
                created_by,
            )
        except asyncpg.UniqueViolationError:
            raise Conflict("Organization slug already exists.") from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_org(row)

    async def list_orgs_for_user(self, user_id: UUID) -> list[OrgSummary]:
        """Get organizations where the user is an active member."""
        rows = await self._db.fetch_all(
            """
            SELECT o.id, o.name, o.slug, om.role, om.status
            FROM org_members om
            JOIN organizations o ON o.id = om.org_id
            WHERE om.user_id = $1 AND om.status = 'active'
            ORDER BY o.created_at, o.id
            """,
            user_id,
        )
        return [
            OrgSummary(
                id=row["id"],
                name=row["name"],
                slug=row["slug"],
                role=OrgRole(row["role"]),
                status=OrgMemberStatus(row["status"]),
            )
            for row in rows
        ]

    async def get_org_member(self, org_id: UUID, user_id: UUID) -> OrgMember | None:
        """Get user's membership in an organization."""
        row = await self._db.fetch_one(
            "SELECT * FROM org_members WHERE org_id = $1 AND user_id = $2",
            org_id,
            user_id,
        )
        return self._row_to_org_member(row) if row else None

    async def get_org_owner(self, org_id: UUID) -> OrgMember | None:
        """Get the earliest active owner of an organization."""
        row = await self._db.fetch_one(
            """
            SELECT * FROM org_members
            WHERE org_id = $1 AND role = 'owner' AND status = 'active'
            ORDER BY created_at, id
            LIMIT 1
            """,
            org_id,
        )
        return self._row_to_org_member(row) if row else None

    async def add_org_member(self, org_id: UUID, user_id: UUID, role: OrgRole) -> OrgMember:
        """Insert an active org membership if absent; existing rows are kept."""
        await self._db.execute(
            """
            INSERT INTO org_members (org_id, user_id, role, status)
            VALUES ($1, $2, $3, 'active')
            ON CONFLICT (org_id, user_id) DO NOTHING
            """,
            org_id,
            user_id,
            role.value,
        )
        member = await self.get_org_member(org_id, user_id)
        assert member is not None, "org member must exist after insert"
        return member

    async def upsert_org_member(
        self,
        org_id: UUID,
        user_id: UUID,
        role: OrgRole,
        status: OrgMemberStatus = OrgMemberStatus.ACTIVE,
    ) -> OrgMember:
        """Insert an org membership, or overwrite role and status if present."""
        row = await self._db.fetch_one(
            """
            INSERT INTO org_members (org_id, user_id, role, status)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (org_id, user_id)
            DO UPDATE SET role = EXCLUDED.role, status = EXCLUDED.status
            RETURNING *
            """,
            org_id,
            user_id,
            role.value,
            status.value,
        )
        assert row is not None, "UPSERT RETURNING should always return a row"
        return self._row_to_org_member(row)

    async def list_org_members(self, org_id: UUID) -> list[OrgMemberProfile]:
        """Get the org roster ordered by member name."""
        rows = await self._db.fetch_all(
            """
            SELECT om.id, om.user_id, om.role, om.status, u.name, u.email
            FROM org_members om
            JOIN users u ON u.id = om.user_id
            WHERE om.org_id = $1
            ORDER BY u.name, u.id
            """,
            org_id,
        )
        return [
            OrgMemberProfile(
                id=row["id"],
                user_id=row["user_id"],
                role=OrgRole(row["role"]),
                status=OrgMemberStatus(row["status"]),
                name=row["name"],
                email=row["email"],
            )
            for row in rows
        ]

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
        row = await self._db.fetch_one(
            """
            INSERT INTO org_invites (org_id, email, role, token, expires_at)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            org_id,
            email,
            role.value,
            token,
            expires_at,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_invite(row)

    async def get_invite_by_token(self, token: str) -> OrgInvite | None:
        """Look up an invite by its token."""
        row = await self._db.fetch_one("SELECT * FROM org_invites WHERE token = $1", token)
        return self._row_to_invite(row) if row else None

    async def list_org_invites(self, org_id: UUID) -> list[OrgInvite]:
        """Get all invites of an organization, newest first."""
        rows = await self._db.fetch_all(
            "SELECT * FROM org_invites WHERE org_id = $1 ORDER BY created_at DESC, id",
            org_id,
        )
        return [self._row_to_invite(row) for row in rows]

    async def list_pending_invites_for_email(
        self, email: str, now: datetime
    ) -> list[PendingInvite]:
        """Get unaccepted, unexpired invites addressed to an email, newest first."""
        rows = await self._db.fetch_all(
            """
            SELECT i.id, i.org_id, o.name AS org_name, i.role, i.token,
                   i.expires_at, i.created_at
            FROM org_invites i
            JOIN organizations o ON o.id = i.org_id
            WHERE LOWER(i.email) = LOWER($1)
              AND i.accepted_at IS NULL
              AND i.expires_at >= $2
            ORDER BY i.created_at DESC, i.id
            """,
            email,
            now,
        )
        return [
            PendingInvite(
                id=row["id"],
                org_id=row["org_id"],
                org_name=row["org_name"],
                role=OrgRole(row["role"]),
                token=row["token"],
                expires_at=row["expires_at"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def mark_invite_accepted(self, invite_id: UUID, accepted_at: datetime) -> bool:
        """Stamp accepted_at where it is still null. Returns True if stamped."""
        status = await self._db.execute(
            """
            UPDATE org_invites SET accepted_at = $2
            WHERE id = $1 AND accepted_at IS NULL
            """,
            invite_id,
            accepted_at,
        )
        return rows_affected(status) > 0

    # Usage counts
    async def count_personal_workspaces(self, user_id: UUID) -> int:
        """Count personal workspaces the user is a member of."""
        count = await self._db.fetch_val(
            """
            SELECT COUNT(*) FROM memberships m
            JOIN workspaces w ON w.id = m.workspace_id
            WHERE m.user_id = $1 AND w.type = 'personal'
            """,
            user_id,
        )
        return int(count or 0)

    async def count_active_org_memberships(self, user_id: UUID) -> int:
        """Count organizations where the user is an active member."""
        count = await self._db.fetch_val(
            "SELECT COUNT(*) FROM org_members WHERE user_id = $1 AND status = 'active'",
            user_id,
        )
        return int(count or 0)

    async def count_org_workspaces(self, org_id: UUID) -> int:
        """Count workspaces owned by an organization."""
        count = await self._db.fetch_val(
            "SELECT COUNT(*) FROM workspaces WHERE org_id = $1",
            org_id,
        )
        return int(count or 0)

    async def count_active_org_members(self, org_id: UUID) -> int:
        """Count active members of an organization."""
        count = await self._db.fetch_val(
            "SELECT COUNT(*) FROM org_members WHERE org_id = $1 AND status = 'active'",
            org_id,
        )
        return int(count or 0)

    async def count_pending_invites(self, org_id: UUID, now: datetime) -> int:
        """Count unaccepted, unexpired invites of an organization."""
        count = await self._db.fetch_val(
            """
            SELECT COUNT(*) FROM org_invites
            WHERE org_id = $1 AND accepted_at IS NULL AND expires_at >= $2
            """,
            org_id,
            now,
        )
        return int(count or 0)
