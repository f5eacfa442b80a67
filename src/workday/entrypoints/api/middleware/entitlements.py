"""Entitlement and active-workspace dependencies for API routes."""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request

from workday.core.auth.types import SessionIdentity
from workday.core.entitlements.engine import EntitlementEngine
from workday.core.entitlements.engine import require_feature as check_feature
from workday.core.entitlements.features import Feature
from workday.core.entitlements.types import Entitlements
from workday.core.workspaces.resolver import MembershipResolver
from workday.core.workspaces.types import ActiveWorkspace
from workday.entrypoints.api.deps import get_entitlement_engine, get_repo
from workday.entrypoints.api.middleware.session_auth import get_workspace_hint, require_session


async def resolve_active_workspace(
    request: Request,
    identity: Annotated[SessionIdentity, Depends(require_session)],
    workspace_id: UUID | None = None,
) -> ActiveWorkspace | None:
    """Resolve the caller's active workspace.

    An explicit ``workspace_id`` query parameter takes precedence over the
    hint cookie; either is honoured only when a membership backs it.
    """
    hint = workspace_id or get_workspace_hint(request)
    resolver = MembershipResolver(get_repo(request))
    return await resolver.resolve_active(identity.user_id, hint)


async def get_entitlements(
    identity: Annotated[SessionIdentity, Depends(require_session)],
    engine: Annotated[EntitlementEngine, Depends(get_entitlement_engine)],
) -> Entitlements:
    """Compute the caller's entitlements for this request."""
    return await engine.compute(identity.user_id)


def require_feature(feature: Feature) -> Callable[..., Awaitable[Entitlements]]:
    """Dependency factory to require a plan feature.

    Usage:
        @router.get("/timeline")
        async def timeline(
            entitlements: Annotated[
                Entitlements, Depends(require_feature(Feature.VIEW_TIMELINE))
            ],
        ):
            ...

    Args:
        feature: Feature that must be enabled.

    Raises:
        FeatureNotAvailable: 403 if the plan lacks the feature.
    """

    async def feature_checker(
        entitlements: Annotated[Entitlements, Depends(get_entitlements)],
    ) -> Entitlements:
        check_feature(entitlements, feature)
        return entitlements

    return feature_checker


RequireSession = Annotated[SessionIdentity, Depends(require_session)]
ActiveWorkspaceDep = Annotated[ActiveWorkspace | None, Depends(resolve_active_workspace)]
EntitlementsDep = Annotated[Entitlements, Depends(get_entitlements)]
