"""Workspace domain types."""

from workday.core.workspaces.types import (
    WORKSPACE_ROLE_HIERARCHY,
    ActiveWorkspace,
    Membership,
    Workspace,
    WorkspaceMember,
    WorkspaceRole,
    WorkspaceType,
)

__all__ = [
    "Workspace",
    "WorkspaceType",
    "WorkspaceRole",
    "WORKSPACE_ROLE_HIERARCHY",
    "Membership",
    "WorkspaceMember",
    "ActiveWorkspace",
]
