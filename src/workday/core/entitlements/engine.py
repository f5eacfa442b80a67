"""Entitlement computation and plan gate checks."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

import structlog

from workday.core.auth.repository import AuthRepository
from workday.core.entitlements.features import (
    ADMIN_FEATURES,
    ADMIN_LIMITS,
    FREE_FALLBACK_FEATURES,
    FREE_FALLBACK_LIMITS,
    FREE_FALLBACK_NAME,
    Feature,
    LimitKey,
    Plan,
)
from workday.core.entitlements.interfaces import PlanCatalog
from workday.core.entitlements.types import Entitlements, UsageReport
from workday.core.exceptions import FeatureNotAvailable, LimitReached
from workday.core.workspaces.types import ActiveWorkspace

logger = structlog.get_logger()


def admin_entitlements() -> Entitlements:
    """Fixed maximal entitlement set for global admins."""
    return Entitlements(
        plan_key="admin",
        plan_name="Admin",
        features=dict(ADMIN_FEATURES),
        limits=dict(ADMIN_LIMITS),
        is_admin=True,
    )


def free_fallback_entitlements() -> Entitlements:
    """Most restrictive built-in plan, used whenever the catalog cannot answer."""
    return Entitlements(
        plan_key=Plan.FREE.value,
        plan_name=FREE_FALLBACK_NAME,
        features=dict(FREE_FALLBACK_FEATURES),
        limits=dict(FREE_FALLBACK_LIMITS),
        is_admin=False,
    )


class EntitlementEngine:
    """Maps users to features and limits.

    Admin status always short-circuits the plan lookup. Any other failure
    (unknown user, unknown plan key, store error) degrades to the free
    fallback instead of failing the request.
    """

    def __init__(self, repo: AuthRepository, catalog: PlanCatalog) -> None:
        """Initialize the engine.

        Args:
            repo: Store used to read the user's admin flag and plan key.
            catalog: Plan catalog.
        """
        self._repo = repo
        self._catalog = catalog

    async def compute(self, user_id: UUID) -> Entitlements:
        """Compute the entitlements of a user.

        Args:
            user_id: User to compute entitlements for.

        Returns:
            Resolved entitlements; never raises.
        """
        try:
            user = await self._repo.get_user_by_id(user_id)
            if user is None:
                logger.warning("entitlements_unknown_user", user_id=str(user_id))
                return free_fallback_entitlements()

            if user.is_admin:
                return admin_entitlements()

            plan = await self._catalog.get_plan(user.plan_key)
        except Exception:
            logger.exception("entitlements_lookup_failed", user_id=str(user_id))
            return free_fallback_entitlements()

        if plan is None:
            logger.warning("entitlements_unknown_plan", user_id=str(user_id), plan_key=user.plan_key)
            return free_fallback_entitlements()

        return Entitlements(
            plan_key=plan.key,
            plan_name=plan.name,
            features=dict(plan.features),
            limits=dict(plan.limits),
            is_admin=False,
        )

    async def usage(self, user_id: UUID, active: ActiveWorkspace | None = None) -> UsageReport:
        """Count live usage for the limits that are tracked per user and org.

        Args:
            user_id: User whose personal usage is counted.
            active: Active workspace; org-scoped counts use its organization.

        Returns:
            Usage counts, org-scoped ones zero outside an organization.
        """
        report = UsageReport(
            personal_workspaces=await self._repo.count_personal_workspaces(user_id),
            organizations=await self._repo.count_active_org_memberships(user_id),
        )
        org_id = active.workspace.org_id if active else None
        if org_id is not None:
            report.org_workspaces_per_org = await self._repo.count_org_workspaces(org_id)
            report.org_members = await self._repo.count_active_org_members(org_id)
        return report

    async def org_seat_usage(self, org_id: UUID, now: datetime | None = None) -> int:
        """Seats taken in an org: active members plus pending invites."""
        now = now or datetime.now(UTC)
        members = await self._repo.count_active_org_members(org_id)
        invites = await self._repo.count_pending_invites(org_id, now)
        return members + invites


def _key_name(key: Feature | LimitKey | str) -> str:
    return key.value if isinstance(key, Enum) else key


def feature_allowed(entitlements: Entitlements, key: Feature | str) -> bool:
    """Check a boolean feature; a key absent from the plan is disallowed."""
    try:
        feature = Feature(key)
    except ValueError:
        return False
    return entitlements.features.get(feature, False) is True


def limit_value(entitlements: Entitlements, key: LimitKey | str) -> int:
    """Get a numeric limit; a key absent from the plan is 0."""
    try:
        limit = LimitKey(key)
    except ValueError:
        return 0
    return entitlements.limits.get(limit, 0)


def require_feature(entitlements: Entitlements, key: Feature | str) -> None:
    """Gate business logic on a feature.

    Raises:
        FeatureNotAvailable: If the plan does not include the feature.
    """
    if not feature_allowed(entitlements, key):
        raise FeatureNotAvailable(_key_name(key))


def enforce_limit(entitlements: Entitlements, key: LimitKey | str, usage: int) -> None:
    """Check current usage against a limit before a usage-increasing write.

    Admins bypass the check entirely. Not isolated against concurrent
    creators, so a race can overshoot a limit by the number of racers.

    Args:
        entitlements: Caller's entitlements.
        key: Limit to check.
        usage: Current count of live rows in the limit's scope.

    Raises:
        LimitReached: If usage already meets or exceeds the limit.
    """
    if entitlements.is_admin:
        return
    maximum = limit_value(entitlements, key)
    if usage >= maximum:
        raise LimitReached(_key_name(key), maximum)
