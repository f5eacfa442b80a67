"""Organization and invite domain types."""

from workday.core.orgs.types import (
    ORG_MANAGER_ROLES,
    InviteState,
    Organization,
    OrgInvite,
    OrgMember,
    OrgMemberProfile,
    OrgMemberStatus,
    OrgRole,
    OrgSummary,
    PendingInvite,
)

__all__ = [
    "Organization",
    "OrgRole",
    "ORG_MANAGER_ROLES",
    "OrgMember",
    "OrgMemberStatus",
    "OrgMemberProfile",
    "OrgSummary",
    "OrgInvite",
    "InviteState",
    "PendingInvite",
]
