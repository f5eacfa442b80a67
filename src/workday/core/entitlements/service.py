"""Plan catalog administration and plan assignment."""

from typing import Any
from uuid import UUID

import structlog

from workday.core.auth.repository import AuthRepository
from workday.core.entitlements.features import (
    DEFAULT_PLAN_CATALOG,
    Plan,
    parse_features,
    parse_limits,
)
from workday.core.entitlements.interfaces import PlanCatalog
from workday.core.entitlements.types import SubscriptionPlan
from workday.core.exceptions import Forbidden, NotFound, ValidationFailed

logger = structlog.get_logger()


async def seed_default_catalog(catalog: PlanCatalog) -> int:
    """Insert the built-in plans that are missing from the catalog.

    Existing rows are left untouched so admin edits survive restarts.

    Returns:
        Number of plans inserted.
    """
    inserted = 0
    for plan_key, (name, price, features, limits) in DEFAULT_PLAN_CATALOG.items():
        if await catalog.get_plan(plan_key.value) is not None:
            continue
        await catalog.upsert_plan(
            SubscriptionPlan(
                key=plan_key.value,
                name=name,
                price_monthly=price,
                features=dict(features),
                limits=dict(limits),
            )
        )
        inserted += 1
    if inserted:
        logger.info("plan_catalog_seeded", inserted=inserted)
    return inserted


class SubscriptionService:
    """Service for reading, editing and assigning subscription plans."""

    def __init__(self, repo: AuthRepository, catalog: PlanCatalog) -> None:
        """Initialize with store and catalog.

        Args:
            repo: Store holding users.
            catalog: Plan catalog.
        """
        self._repo = repo
        self._catalog = catalog

    async def list_catalog(self) -> list[SubscriptionPlan]:
        """List the public plan catalog ordered by price."""
        return await self._catalog.list_plans()

    async def _require_admin(self, actor_id: UUID) -> None:
        user = await self._repo.get_user_by_id(actor_id)
        if user is None or not user.is_admin:
            raise Forbidden()

    async def list_plans(self, actor_id: UUID) -> list[SubscriptionPlan]:
        """List plans for editing. Global admins only.

        Raises:
            Forbidden: If the actor is not a global admin.
        """
        await self._require_admin(actor_id)
        return await self._catalog.list_plans()

    async def update_plan(
        self,
        actor_id: UUID,
        key: str,
        name: str,
        price_monthly: int,
        features: dict[str, Any],
        limits: dict[str, Any],
    ) -> SubscriptionPlan:
        """Replace the definition of an existing plan. Global admins only.

        Unknown feature and limit keys are dropped at this point so the
        stored catalog only ever holds keys the engine understands.

        Raises:
            Forbidden: If the actor is not a global admin.
            NotFound: If the plan key is not in the catalog.
            ValidationFailed: If the price is negative.
        """
        await self._require_admin(actor_id)
        if price_monthly < 0:
            raise ValidationFailed("Monthly price must not be negative.")
        if await self._catalog.get_plan(key) is None:
            raise NotFound("Plan not found.")

        plan = await self._catalog.upsert_plan(
            SubscriptionPlan(
                key=key,
                name=name,
                price_monthly=price_monthly,
                features=parse_features(features, plan_key=key),
                limits=parse_limits(limits, plan_key=key),
            )
        )
        logger.info("subscription_plan_updated", actor_id=str(actor_id), plan_key=key)
        return plan

    async def subscribe(self, user_id: UUID, plan_key: str) -> str:
        """Assign a catalog plan to a user. No payment is taken.

        Raises:
            ValidationFailed: If the key is not a known plan key.
            NotFound: If the plan is not in the catalog.
        """
        try:
            plan = Plan(plan_key)
        except ValueError:
            raise ValidationFailed("Unknown plan key.") from None
        if await self._catalog.get_plan(plan.value) is None:
            raise NotFound("Plan not found.")

        await self._repo.set_user_plan(user_id, plan.value)
        logger.info("subscription_updated", user_id=str(user_id), plan_key=plan.value)
        return plan.value
