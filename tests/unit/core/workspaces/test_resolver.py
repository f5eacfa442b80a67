"""Tests for active workspace resolution."""

from uuid import uuid4

import pytest

from tests.fixtures.stores import add_personal_workspace, add_user
from workday.adapters.db.memory import InMemoryStore
from workday.core.exceptions import Forbidden
from workday.core.workspaces.resolver import (
    MembershipResolver,
    require_workspace_role,
    role_at_least,
)
from workday.core.workspaces.types import WorkspaceRole


class TestMembershipResolver:
    """Test MembershipResolver.resolve_active."""

    @pytest.mark.asyncio
    async def test_defaults_to_first_membership(self, store: InMemoryStore) -> None:
        """Without a hint the oldest workspace wins."""
        user = await add_user(store, "ada@example.com")
        first = await add_personal_workspace(store, user, "First")
        await add_personal_workspace(store, user, "Second")

        active = await MembershipResolver(store).resolve_active(user.id)

        assert active is not None
        assert active.workspace.id == first.id
        assert active.role == WorkspaceRole.ADMIN

    @pytest.mark.asyncio
    async def test_honours_backed_hint(self, store: InMemoryStore) -> None:
        """A hint backed by a membership is used, as UUID or string."""
        user = await add_user(store, "ada@example.com")
        await add_personal_workspace(store, user, "First")
        second = await add_personal_workspace(store, user, "Second")
        resolver = MembershipResolver(store)

        by_uuid = await resolver.resolve_active(user.id, second.id)
        by_str = await resolver.resolve_active(user.id, str(second.id))

        assert by_uuid is not None and by_uuid.workspace.id == second.id
        assert by_str is not None and by_str.workspace.id == second.id

    @pytest.mark.asyncio
    async def test_ignores_forged_hint(self, store: InMemoryStore) -> None:
        """A hint pointing at someone else's workspace falls back."""
        ada = await add_user(store, "ada@example.com")
        eve = await add_user(store, "eve@example.com")
        own = await add_personal_workspace(store, eve, "Eve's")
        victim = await add_personal_workspace(store, ada, "Ada's")

        active = await MembershipResolver(store).resolve_active(eve.id, victim.id)

        assert active is not None
        assert active.workspace.id == own.id

    @pytest.mark.asyncio
    async def test_ignores_garbage_hint(self, store: InMemoryStore) -> None:
        """Unparseable and unknown hints fall back."""
        user = await add_user(store, "ada@example.com")
        own = await add_personal_workspace(store, user)
        resolver = MembershipResolver(store)

        for hint in ("not-a-uuid", "", str(uuid4())):
            active = await resolver.resolve_active(user.id, hint)
            assert active is not None
            assert active.workspace.id == own.id

    @pytest.mark.asyncio
    async def test_no_memberships(self, store: InMemoryStore) -> None:
        """A user without memberships has no active workspace."""
        user = await add_user(store, "ada@example.com")

        assert await MembershipResolver(store).resolve_active(user.id) is None


class TestRoleChecks:
    """Test role hierarchy helpers."""

    def test_role_at_least(self) -> None:
        """Roles compare by hierarchy."""
        assert role_at_least(WorkspaceRole.ADMIN, WorkspaceRole.MEMBER)
        assert role_at_least(WorkspaceRole.SUPERVISOR, WorkspaceRole.SUPERVISOR)
        assert not role_at_least(WorkspaceRole.MEMBER, WorkspaceRole.SUPERVISOR)

    @pytest.mark.asyncio
    async def test_require_workspace_role(self, store: InMemoryStore) -> None:
        """Too-low roles and missing workspaces are forbidden."""
        user = await add_user(store, "ada@example.com")
        workspace = await add_personal_workspace(store, user)
        member = await add_user(store, "bob@example.com")
        await store.add_membership(member.id, workspace.id, WorkspaceRole.MEMBER)
        resolver = MembershipResolver(store)

        admin_active = await resolver.resolve_active(user.id)
        member_active = await resolver.resolve_active(member.id)

        assert require_workspace_role(admin_active, WorkspaceRole.ADMIN) is admin_active
        with pytest.raises(Forbidden):
            require_workspace_role(member_active, WorkspaceRole.SUPERVISOR)
        with pytest.raises(Forbidden):
            require_workspace_role(None, WorkspaceRole.MEMBER)
