"""Auth service for login, registration, profile edits and session identity."""

from typing import Any
from uuid import UUID

import structlog

from workday.core.auth.password import hash_password, verify_password
from workday.core.auth.repository import AuthRepository
from workday.core.auth.types import SessionIdentity, User
from workday.core.exceptions import Conflict, NotFound, Unauthenticated, ValidationFailed
from workday.core.workspaces.types import WorkspaceRole, WorkspaceType

logger = structlog.get_logger()


class AuthError(Unauthenticated):
    """Raised when authentication fails."""

    default_message = "Invalid email or password."


class AuthService:
    """Service for authentication operations."""

    def __init__(self, repo: AuthRepository) -> None:
        """Initialize with auth repository.

        Args:
            repo: Auth repository for database operations.
        """
        self._repo = repo

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate a user by email and password.

        Unknown email and wrong password are indistinguishable to the caller.

        Args:
            email: User's email address, any casing.
            password: Plain text password.

        Returns:
            Dict with the session identity and the id of the workspace the
            client should start in (None when the user has none).

        Raises:
            AuthError: If authentication fails.
        """
        user = await self._repo.get_user_by_email(email.strip().lower())
        if not user or not verify_password(password, user.password_hash):
            logger.warning("login_failed", email=email.strip().lower())
            raise AuthError()

        memberships = await self._repo.list_memberships(user.id)
        workspace_id = memberships[0][1].id if memberships else None

        logger.info("login_succeeded", user_id=str(user.id))
        return {
            "identity": _identity_for(user),
            "user": user,
            "workspace_id": workspace_id,
        }

    async def register(
        self,
        email: str,
        password: str,
        name: str,
        workspace_name: str | None = None,
    ) -> dict[str, Any]:
        """Register a new user with a personal workspace they administer.

        Args:
            email: User's email address, stored lower-cased.
            password: Plain text password.
            name: User's display name.
            workspace_name: Personal workspace name, defaults to "<name>'s Workspace".

        Returns:
            Dict with the session identity, the user and the new workspace id.

        Raises:
            ValidationFailed: If a required field is blank.
            Conflict: If the email is already registered.
        """
        email = email.strip().lower()
        name = name.strip()
        if not email or not name or not password.strip():
            raise ValidationFailed("Missing required fields.")

        if await self._repo.get_user_by_email(email):
            raise Conflict("An account with that email already exists.")

        user = await self._repo.create_user(
            email=email,
            name=name,
            password_hash=hash_password(password),
        )
        workspace = await self._repo.create_workspace(
            name=(workspace_name or "").strip() or f"{name}'s Workspace",
            type=WorkspaceType.PERSONAL,
        )
        await self._repo.add_membership(user.id, workspace.id, WorkspaceRole.ADMIN)

        logger.info("user_registered", user_id=str(user.id), workspace_id=str(workspace.id))
        return {
            "identity": _identity_for(user),
            "user": user,
            "workspace_id": workspace.id,
        }

    async def get_profile(self, user_id: UUID) -> dict[str, Any]:
        """Load a user with their workspace memberships.

        Raises:
            NotFound: If the user no longer exists.
        """
        user = await self._repo.get_user_by_id(user_id)
        if user is None:
            raise NotFound("User not found.")
        return {"user": user, "memberships": await self._repo.list_memberships(user_id)}

    async def update_profile(
        self,
        user_id: UUID,
        name: str | None = None,
        email: str | None = None,
        current_password: str | None = None,
        new_password: str | None = None,
    ) -> dict[str, Any]:
        """Edit the caller's name, email or password.

        Blank fields are left unchanged. Everything is validated before the
        single write, so a rejected password change also keeps the old name
        and email.

        Args:
            user_id: User being edited, always the session user.
            name: New display name.
            email: New email address, stored lower-cased.
            current_password: Required alongside `new_password`.
            new_password: Replacement password.

        Returns:
            Dict with the refreshed session identity and the updated user.

        Raises:
            NotFound: If the user no longer exists.
            Conflict: If the email belongs to another account.
            ValidationFailed: If the current password is missing or wrong.
        """
        user = await self._repo.get_user_by_id(user_id)
        if user is None:
            raise NotFound("User not found.")

        next_name = (name or "").strip() or None
        next_email = (email or "").strip().lower() or None
        if next_email == user.email:
            next_email = None
        if next_email is not None:
            existing = await self._repo.get_user_by_email(next_email)
            if existing is not None and existing.id != user.id:
                raise Conflict("An account with that email already exists.")

        password_hash = None
        if new_password:
            if not current_password:
                raise ValidationFailed("Current password is required.")
            if not verify_password(current_password, user.password_hash):
                logger.warning("password_change_rejected", user_id=str(user.id))
                raise ValidationFailed("Current password is incorrect.")
            password_hash = hash_password(new_password)

        updated = await self._repo.update_user(
            user.id, name=next_name, email=next_email, password_hash=password_hash
        )
        if updated is None:
            raise NotFound("User not found.")

        changed = [
            field
            for field, value in (
                ("name", next_name),
                ("email", next_email),
                ("password", password_hash),
            )
            if value is not None
        ]
        logger.info("profile_updated", user_id=str(user.id), fields=changed)
        return {"identity": _identity_for(updated), "user": updated}

    async def get_session_user(self, identity: SessionIdentity | None) -> User | None:
        """Load the user behind a verified session.

        A token whose user row no longer exists counts as no session.
        """
        if identity is None:
            return None
        return await self._repo.get_user_by_id(identity.user_id)


def _identity_for(user: User) -> SessionIdentity:
    return SessionIdentity(user_id=user.id, email=user.email, name=user.name)
