"""Protocol definitions for plan catalog backends."""

from typing import Protocol, runtime_checkable

from workday.core.entitlements.types import SubscriptionPlan


@runtime_checkable
class PlanCatalog(Protocol):
    """Protocol for the global subscription plan catalog.

    Implementations:
    - DatabasePlanCatalog: subscription_plans table in PostgreSQL
    - InMemoryStore: dict-backed catalog for tests and demo mode
    """

    async def get_plan(self, key: str) -> SubscriptionPlan | None:
        """Get a plan by key.

        Args:
            key: Plan key (free, pro, enterprise).

        Returns:
            The plan, or None when the key is not in the catalog.
        """
        ...

    async def list_plans(self) -> list[SubscriptionPlan]:
        """List every plan ordered by monthly price."""
        ...

    async def upsert_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        """Insert or replace a catalog row.

        Args:
            plan: Full plan definition.

        Returns:
            The stored plan.
        """
        ...
