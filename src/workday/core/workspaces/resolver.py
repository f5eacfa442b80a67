"""Active workspace and role resolution."""

from uuid import UUID

import structlog

from workday.core.auth.repository import AuthRepository
from workday.core.exceptions import Forbidden
from workday.core.workspaces.types import (
    WORKSPACE_ROLE_HIERARCHY,
    ActiveWorkspace,
    WorkspaceRole,
)

logger = structlog.get_logger()


def role_at_least(role: WorkspaceRole, minimum: WorkspaceRole) -> bool:
    """Check a workspace role against a minimum in the hierarchy."""
    return WORKSPACE_ROLE_HIERARCHY.index(role) >= WORKSPACE_ROLE_HIERARCHY.index(minimum)


def require_workspace_role(active: ActiveWorkspace | None, minimum: WorkspaceRole) -> ActiveWorkspace:
    """Reject unless the caller holds at least `minimum` in the active workspace.

    Args:
        active: Result of MembershipResolver.resolve_active.
        minimum: Lowest role allowed to perform the operation.

    Returns:
        The active workspace, for chaining.

    Raises:
        Forbidden: If there is no active workspace or the role is too low.
    """
    if active is None or not role_at_least(active.role, minimum):
        raise Forbidden()
    return active


class MembershipResolver:
    """Derives the caller's current workspace from server-side memberships.

    The workspace hint (cookie or query parameter) is only a preference;
    it is honoured solely when a Membership row backs it.
    """

    def __init__(self, repo: AuthRepository) -> None:
        """Initialize with auth repository.

        Args:
            repo: Store holding workspaces and memberships.
        """
        self._repo = repo

    async def resolve_active(
        self,
        user_id: UUID,
        workspace_hint: UUID | str | None = None,
    ) -> ActiveWorkspace | None:
        """Resolve the active workspace for a user.

        Args:
            user_id: Caller.
            workspace_hint: Preferred workspace id, possibly stale or forged.

        Returns:
            The hinted workspace if the user is a member of it, else the
            user's first membership in creation order, else None.
        """
        hint = _parse_hint(workspace_hint)
        if hint is not None:
            membership = await self._repo.get_membership(user_id, hint)
            if membership is not None:
                workspace = await self._repo.get_workspace(hint)
                if workspace is not None:
                    return ActiveWorkspace(workspace=workspace, membership=membership)
            logger.debug("workspace_hint_ignored", user_id=str(user_id), hint=str(hint))

        memberships = await self._repo.list_memberships(user_id)
        if not memberships:
            return None

        membership, workspace = memberships[0]
        return ActiveWorkspace(workspace=workspace, membership=membership)


def _parse_hint(hint: UUID | str | None) -> UUID | None:
    if hint is None or isinstance(hint, UUID):
        return hint
    try:
        return UUID(hint)
    except ValueError:
        return None
