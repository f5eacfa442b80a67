"""Database-backed plan catalog - reads the subscription_plans table."""

import json
from typing import Any

import structlog

from workday.adapters.db.app_db import AppDatabase
from workday.core.entitlements.features import parse_features, parse_limits
from workday.core.entitlements.types import SubscriptionPlan

logger = structlog.get_logger()


class DatabasePlanCatalog:
    """Plan catalog stored in PostgreSQL.

    Feature and limit maps are kept as JSONB. Rows are parsed into the closed
    feature and limit enums on every load, so keys written by older releases
    or by hand are dropped instead of leaking into entitlement checks.
    """

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_plan(self, row: dict[str, Any]) -> SubscriptionPlan:
        """Convert database row to SubscriptionPlan model."""
        key = row["key"]
        return SubscriptionPlan(
            key=key,
            name=row["name"],
            price_monthly=row["price_monthly"],
            features=parse_features(_load_json(row.get("features_json"), key), plan_key=key),
            limits=parse_limits(_load_json(row.get("limits_json"), key), plan_key=key),
        )

    async def get_plan(self, key: str) -> SubscriptionPlan | None:
        """Get a plan by key."""
        row = await self._db.fetch_one("SELECT * FROM subscription_plans WHERE key = $1", key)
        return self._row_to_plan(row) if row else None

    async def list_plans(self) -> list[SubscriptionPlan]:
        """List every plan ordered by monthly price."""
        rows = await self._db.fetch_all(
            "SELECT * FROM subscription_plans ORDER BY price_monthly, key"
        )
        return [self._row_to_plan(row) for row in rows]

    async def upsert_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        """Insert or replace a catalog row."""
        row = await self._db.fetch_one(
            """
            INSERT INTO subscription_plans (key, name, price_monthly, features_json, limits_json)
            VALUES ($1, $2, $3, $4::jsonb, $5::jsonb)
            ON CONFLICT (key) DO UPDATE SET
                name = EXCLUDED.name,
                price_monthly = EXCLUDED.price_monthly,
                features_json = EXCLUDED.features_json,
                limits_json = EXCLUDED.limits_json,
                updated_at = NOW()
            RETURNING *
            """,
            plan.key,
            plan.name,
            plan.price_monthly,
            json.dumps({feature.value: value for feature, value in plan.features.items()}),
            json.dumps({limit.value: value for limit, value in plan.limits.items()}),
        )
        assert row is not None, "UPSERT RETURNING should always return a row"
        return self._row_to_plan(row)


def _load_json(value: Any, plan_key: str) -> dict[str, Any]:
    # asyncpg returns JSONB as text unless a codec is registered.
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("plan_catalog_invalid_json", plan_key=plan_key)
            return {}
    if not isinstance(value, dict):
        logger.warning("plan_catalog_invalid_json", plan_key=plan_key)
        return {}
    return value
