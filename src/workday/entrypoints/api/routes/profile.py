"""Profile API routes: view and edit the signed-in user."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field, field_validator

from workday.core.auth.service import AuthService
from workday.core.workspaces.types import WorkspaceRole, WorkspaceType
from workday.entrypoints.api.deps import get_auth_service
from workday.entrypoints.api.middleware.entitlements import RequireSession
from workday.entrypoints.api.middleware.session_auth import set_session_cookie
from workday.entrypoints.api.routes.auth import UserResponse, user_response

router = APIRouter(prefix="/profile", tags=["profile"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


class ProfileMembership(BaseModel):
    """A workspace the user belongs to."""

    workspace_id: UUID
    workspace_name: str
    workspace_type: WorkspaceType
    role: WorkspaceRole


class ProfileResponse(BaseModel):
    """User profile with workspace memberships."""

    user: UserResponse
    memberships: list[ProfileMembership]


class UpdateProfileRequest(BaseModel):
    """Profile update request body. Omitted or blank fields are unchanged."""

    name: str | None = Field(default=None, max_length=200)
    email: EmailStr | None = None
    current_password: str | None = Field(default=None, max_length=256)
    new_password: str | None = Field(default=None, min_length=8, max_length=256)

    @field_validator("name", "email", "current_password", "new_password", mode="before")
    @classmethod
    def blank_as_unset(cls, value: object) -> object:
        """Treat empty strings like omitted fields."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UpdateProfileResponse(BaseModel):
    """Result of a profile edit."""

    ok: bool = True
    user: UserResponse


@router.get("", response_model=ProfileResponse)
async def get_profile(identity: RequireSession, service: AuthServiceDep) -> ProfileResponse:
    """Return the caller's profile and memberships."""
    profile = await service.get_profile(identity.user_id)
    return ProfileResponse(
        user=user_response(profile["user"]),
        memberships=[
            ProfileMembership(
                workspace_id=workspace.id,
                workspace_name=workspace.name,
                workspace_type=workspace.type,
                role=membership.role,
            )
            for membership, workspace in profile["memberships"]
        ],
    )


@router.put("", response_model=UpdateProfileResponse)
async def update_profile(
    body: UpdateProfileRequest,
    request: Request,
    response: Response,
    identity: RequireSession,
    service: AuthServiceDep,
) -> UpdateProfileResponse:
    """Edit the caller's profile and reissue the session with the new identity."""
    result = await service.update_profile(
        identity.user_id,
        name=body.name,
        email=body.email,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    set_session_cookie(request, response, result["identity"])
    return UpdateProfileResponse(user=user_response(result["user"]))
