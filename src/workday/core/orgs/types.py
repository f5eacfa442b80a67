"""Organization and invite domain types."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class OrgRole(str, Enum):
    """Organization membership roles."""

    OWNER = "owner"
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    MEMBER = "member"


# Org roles allowed to invite, add members and create org workspaces.
ORG_MANAGER_ROLES = frozenset({OrgRole.OWNER, OrgRole.ADMIN})


class OrgMemberStatus(str, Enum):
    """Org membership status."""

    ACTIVE = "active"
    DISABLED = "disabled"


class InviteState(str, Enum):
    """Invite lifecycle states. EXPIRED is derived from the clock, never stored."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


class Organization(BaseModel):
    """Organization domain model."""

    id: UUID
    name: str
    slug: str
    created_by: UUID
    created_at: datetime


class OrgMember(BaseModel):
    """User's membership in an organization."""

    id: UUID
    org_id: UUID
    user_id: UUID
    role: OrgRole
    status: OrgMemberStatus = OrgMemberStatus.ACTIVE
    created_at: datetime

    @property
    def is_active(self) -> bool:
        """Whether the membership grants read access to the org."""
        return self.status == OrgMemberStatus.ACTIVE


class OrgMemberProfile(BaseModel):
    """Org membership joined with the member's user row."""

    id: UUID
    user_id: UUID
    role: OrgRole
    status: OrgMemberStatus
    name: str
    email: str


class OrgInvite(BaseModel):
    """Single-use, time-bounded invitation into an organization."""

    id: UUID
    org_id: UUID
    email: str
    role: OrgRole
    token: str
    expires_at: datetime
    accepted_at: datetime | None = None
    created_at: datetime

    def state(self, now: datetime | None = None) -> InviteState:
        """Derive the invite state at `now`.

        Accepted wins over expired: an invite consumed before its expiry
        stays accepted forever.
        """
        if self.accepted_at is not None:
            return InviteState.ACCEPTED
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if now > expires_at:
            return InviteState.EXPIRED
        return InviteState.PENDING


class OrgSummary(BaseModel):
    """Organization with the caller's role, for listings."""

    id: UUID
    name: str
    slug: str
    role: OrgRole
    status: OrgMemberStatus


class PendingInvite(BaseModel):
    """Invite addressed to the caller, with the inviting org's name."""

    id: UUID
    org_id: UUID
    org_name: str
    role: OrgRole
    token: str
    expires_at: datetime
    created_at: datetime
