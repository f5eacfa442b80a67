"""Tests for auth service."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from tests.fixtures.stores import identity_for
from workday.adapters.db.memory import InMemoryStore
from workday.core.auth.service import AuthError, AuthService
from workday.core.exceptions import Conflict, NotFound, ValidationFailed
from workday.core.workspaces.types import WorkspaceRole, WorkspaceType

PASSWORD = "correct_password"  # pragma: allowlist secret


class TestAuthServiceRegister:
    """Test registration functionality."""

    @pytest.fixture
    def service(self, store: InMemoryStore) -> AuthService:
        """Create service over an empty store."""
        return AuthService(store)

    @pytest.mark.asyncio
    async def test_register_creates_personal_workspace(
        self, service: AuthService, store: InMemoryStore
    ) -> None:
        """Registration creates the user and a personal workspace they administer."""
        result = await service.register("Ada@Example.com", PASSWORD, "Ada")

        user = result["user"]
        assert user.email == "ada@example.com"
        assert result["identity"].user_id == user.id

        memberships = await store.list_memberships(user.id)
        assert len(memberships) == 1
        membership, workspace = memberships[0]
        assert workspace.id == result["workspace_id"]
        assert workspace.type == WorkspaceType.PERSONAL
        assert workspace.name == "Ada's Workspace"
        assert membership.role == WorkspaceRole.ADMIN

    @pytest.mark.asyncio
    async def test_register_custom_workspace_name(
        self, service: AuthService, store: InMemoryStore
    ) -> None:
        """An explicit workspace name is used."""
        result = await service.register("ada@example.com", PASSWORD, "Ada", "Lab")

        workspace = await store.get_workspace(result["workspace_id"])
        assert workspace is not None
        assert workspace.name == "Lab"

    @pytest.mark.asyncio
    async def test_register_duplicate_email_any_case(self, service: AuthService) -> None:
        """Email uniqueness ignores case."""
        await service.register("ada@example.com", PASSWORD, "Ada")

        with pytest.raises(Conflict):
            await service.register("ADA@example.com", PASSWORD, "Other Ada")

    @pytest.mark.asyncio
    async def test_register_blank_fields(self, service: AuthService, store: InMemoryStore) -> None:
        """Blank name or password is rejected before anything is written."""
        with pytest.raises(ValidationFailed):
            await service.register("ada@example.com", PASSWORD, "   ")
        with pytest.raises(ValidationFailed):
            await service.register("ada@example.com", "   ", "Ada")

        assert store.users == {}


class TestAuthServiceLogin:
    """Test login functionality."""

    @pytest.fixture
    def service(self, store: InMemoryStore) -> AuthService:
        """Create service over an empty store."""
        return AuthService(store)

    @pytest.mark.asyncio
    async def test_login_success(self, service: AuthService) -> None:
        """Login returns the identity and the first workspace."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")

        result = await service.login("  ADA@example.com ", PASSWORD)

        assert result["user"].id == registered["user"].id
        assert result["workspace_id"] == registered["workspace_id"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, service: AuthService) -> None:
        """Should raise AuthError for wrong password."""
        await service.register("ada@example.com", PASSWORD, "Ada")

        with pytest.raises(AuthError) as exc_info:
            await service.login("ada@example.com", "wrong_password")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_login_user_not_found(self) -> None:
        """Unknown email fails with the same message as a wrong password."""
        mock_repo = MagicMock()
        mock_repo.get_user_by_email = AsyncMock(return_value=None)
        service = AuthService(mock_repo)

        with pytest.raises(AuthError) as exc_info:
            await service.login("notfound@example.com", PASSWORD)

        assert exc_info.value.message == "Invalid email or password."
        mock_repo.get_user_by_email.assert_awaited_once_with("notfound@example.com")

    @pytest.mark.asyncio
    async def test_login_without_workspaces(
        self, service: AuthService, store: InMemoryStore
    ) -> None:
        """A user with no memberships logs in with no workspace."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")
        store.memberships.clear()

        result = await service.login("ada@example.com", PASSWORD)

        assert result["user"].id == registered["user"].id
        assert result["workspace_id"] is None


class TestAuthServiceProfile:
    """Test profile reads and edits."""

    @pytest.fixture
    def service(self, store: InMemoryStore) -> AuthService:
        """Create service over an empty store."""
        return AuthService(store)

    @pytest.mark.asyncio
    async def test_get_profile(self, service: AuthService) -> None:
        """The profile lists the user's workspaces."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")

        profile = await service.get_profile(registered["user"].id)

        assert profile["user"].email == "ada@example.com"
        assert [w.id for _, w in profile["memberships"]] == [registered["workspace_id"]]

    @pytest.mark.asyncio
    async def test_get_profile_missing_user(self, service: AuthService) -> None:
        """A deleted user has no profile."""
        with pytest.raises(NotFound):
            await service.get_profile(uuid4())

    @pytest.mark.asyncio
    async def test_update_name_and_email(self, service: AuthService) -> None:
        """Name and email change and the refreshed identity carries them."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")

        result = await service.update_profile(
            registered["user"].id, name="  Ada L. ", email=" Ada.L@Example.com"
        )

        assert result["user"].name == "Ada L."
        assert result["user"].email == "ada.l@example.com"
        assert result["identity"].email == "ada.l@example.com"
        assert result["identity"].name == "Ada L."
        login = await service.login("ada.l@example.com", PASSWORD)
        assert login["user"].id == registered["user"].id

    @pytest.mark.asyncio
    async def test_blank_fields_unchanged(self, service: AuthService) -> None:
        """Blank values leave the stored profile alone."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")

        result = await service.update_profile(registered["user"].id, name="  ", email="")

        assert result["user"] == registered["user"]

    @pytest.mark.asyncio
    async def test_email_taken_any_case(self, service: AuthService) -> None:
        """Another account's email conflicts regardless of case."""
        await service.register("grace@example.com", PASSWORD, "Grace")
        registered = await service.register("ada@example.com", PASSWORD, "Ada")

        with pytest.raises(Conflict):
            await service.update_profile(registered["user"].id, email="GRACE@example.com")

        same = await service.update_profile(registered["user"].id, email="ADA@example.com")
        assert same["user"].email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_change_password(self, service: AuthService) -> None:
        """A new password needs the current one and replaces it."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")
        user_id = registered["user"].id

        with pytest.raises(ValidationFailed, match="required"):
            await service.update_profile(user_id, new_password="brand-new-secret")
        with pytest.raises(ValidationFailed, match="incorrect"):
            await service.update_profile(
                user_id, current_password="wrong", new_password="brand-new-secret"
            )

        await service.update_profile(
            user_id, current_password=PASSWORD, new_password="brand-new-secret"
        )

        with pytest.raises(AuthError):
            await service.login("ada@example.com", PASSWORD)
        assert (await service.login("ada@example.com", "brand-new-secret"))["user"].id == user_id

    @pytest.mark.asyncio
    async def test_rejected_password_change_writes_nothing(
        self, service: AuthService, store: InMemoryStore
    ) -> None:
        """A wrong current password also discards the name change."""
        registered = await service.register("ada@example.com", PASSWORD, "Ada")

        with pytest.raises(ValidationFailed):
            await service.update_profile(
                registered["user"].id,
                name="Mallory",
                current_password="wrong",
                new_password="brand-new-secret",
            )

        assert store.users[registered["user"].id].name == "Ada"

class TestGetSessionUser:
    """Test session user lookup."""

    @pytest.mark.asyncio
    async def test_deleted_user_is_no_session(self, store: InMemoryStore) -> None:
        """A token for a deleted user resolves to None."""
        service = AuthService(store)
        result = await service.register("ada@example.com", PASSWORD, "Ada")
        identity = identity_for(result["user"])

        assert await service.get_session_user(identity) == result["user"]

        del store.users[identity.user_id]
        assert await service.get_session_user(identity) is None
        assert await service.get_session_user(None) is None

    @pytest.mark.asyncio
    async def test_unknown_id(self, store: InMemoryStore) -> None:
        """An identity with an unknown id is no session."""
        from workday.core.auth.types import SessionIdentity

        identity = SessionIdentity(user_id=uuid4(), email="x@example.com", name="X")

        assert await AuthService(store).get_session_user(identity) is None
