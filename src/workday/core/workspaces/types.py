"""Workspace domain types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class WorkspaceType(str, Enum):
    """Kinds of workspace."""

    PERSONAL = "personal"
    ORGANIZATION = "organization"


class WorkspaceRole(str, Enum):
    """Roles a user can hold inside one workspace."""

    MEMBER = "member"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


# Role hierarchy - higher index = more permissions
WORKSPACE_ROLE_HIERARCHY = [WorkspaceRole.MEMBER, WorkspaceRole.SUPERVISOR, WorkspaceRole.ADMIN]


class Workspace(BaseModel):
    """Workspace domain model.

    Personal workspaces have no org_id; organization workspaces always do.
    """

    id: UUID
    name: str
    type: WorkspaceType
    org_id: UUID | None = None
    is_default: bool = False
    created_at: datetime


class Membership(BaseModel):
    """A user's role within one workspace."""

    id: UUID
    user_id: UUID
    workspace_id: UUID
    role: WorkspaceRole
    created_at: datetime


class WorkspaceMember(BaseModel):
    """Membership joined with the member's user row, for rosters."""

    id: UUID
    user_id: UUID
    role: WorkspaceRole
    name: str
    email: str


@dataclass(frozen=True)
class ActiveWorkspace:
    """Resolved workspace for a request and the caller's membership in it."""

    workspace: Workspace
    membership: Membership

    @property
    def role(self) -> WorkspaceRole:
        """Caller's role in the active workspace."""
        return self.membership.role
