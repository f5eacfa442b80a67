"""Feature registry and plan definitions."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger()


class Feature(str, Enum):
    """Boolean features that can be gated by plan."""

    AI_ASSISTANT = "feature.ai_assistant"
    DUE_DATES = "feature.due_dates"
    VIEW_TIMELINE = "feature.view_timeline"
    VIEW_KANBAN = "feature.view_kanban"
    FUTURE_PLANS = "feature.future_plans"
    INTEGRATIONS = "feature.integrations"


class LimitKey(str, Enum):
    """Numeric limits that can be gated by plan."""

    PERSONAL_WORKSPACES = "limit.personal_workspaces"
    ORGANIZATIONS = "limit.organizations"
    ORG_WORKSPACES_PER_ORG = "limit.org_workspaces_per_org"
    CATEGORIES_PER_WORKSPACE = "limit.categories_per_workspace"
    ORG_MEMBERS = "limit.org_members"


class Plan(str, Enum):
    """Available subscription plans."""

    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


# Global admins: every feature, limits high enough to never bind.
UNBOUNDED_LIMIT = 999

ADMIN_FEATURES: dict[Feature, bool] = {feature: True for feature in Feature}
ADMIN_LIMITS: dict[LimitKey, int] = {limit: UNBOUNDED_LIMIT for limit in LimitKey}

# Built-in plan used when a user's plan key is missing from the catalog.
FREE_FALLBACK_NAME = "Free"
FREE_FALLBACK_FEATURES: dict[Feature, bool] = {feature: False for feature in Feature}
FREE_FALLBACK_LIMITS: dict[LimitKey, int] = {
    LimitKey.PERSONAL_WORKSPACES: 1,
    LimitKey.ORGANIZATIONS: 1,
    LimitKey.ORG_WORKSPACES_PER_ORG: 1,
    LimitKey.CATEGORIES_PER_WORKSPACE: 5,
    LimitKey.ORG_MEMBERS: 3,
}

# Catalog seeded into an empty store: (name, price_monthly, features, limits).
DEFAULT_PLAN_CATALOG: dict[Plan, tuple[str, int, dict[Feature, bool], dict[LimitKey, int]]] = {
    Plan.FREE: ("Free", 0, FREE_FALLBACK_FEATURES, FREE_FALLBACK_LIMITS),
    Plan.PRO: (
        "Pro",
        12,
        {
            Feature.AI_ASSISTANT: False,
            Feature.DUE_DATES: True,
            Feature.VIEW_TIMELINE: True,
            Feature.VIEW_KANBAN: True,
            Feature.FUTURE_PLANS: True,
            Feature.INTEGRATIONS: False,
        },
        {
            LimitKey.PERSONAL_WORKSPACES: 3,
            LimitKey.ORGANIZATIONS: 2,
            LimitKey.ORG_WORKSPACES_PER_ORG: 5,
            LimitKey.CATEGORIES_PER_WORKSPACE: 20,
            LimitKey.ORG_MEMBERS: 10,
        },
    ),
    Plan.ENTERPRISE: (
        "Enterprise",
        49,
        {feature: True for feature in Feature},
        {
            LimitKey.PERSONAL_WORKSPACES: 10,
            LimitKey.ORGANIZATIONS: 10,
            LimitKey.ORG_WORKSPACES_PER_ORG: 50,
            LimitKey.CATEGORIES_PER_WORKSPACE: 100,
            LimitKey.ORG_MEMBERS: 250,
        },
    ),
}


def parse_features(raw: Mapping[str, Any], plan_key: str = "") -> dict[Feature, bool]:
    """Parse a stored feature map into the closed Feature enum.

    Unknown keys are dropped so a catalog written by a newer release still
    loads; the dropped key then reads as absent (disallowed).

    Args:
        raw: Feature map as stored (string keys).
        plan_key: Plan the map belongs to, for log context.

    Returns:
        Map of known features to booleans.
    """
    features: dict[Feature, bool] = {}
    for key, value in raw.items():
        try:
            feature = Feature(key)
        except ValueError:
            logger.warning("unknown_feature_key_ignored", plan_key=plan_key, key=key)
            continue
        features[feature] = value is True
    return features


def parse_limits(raw: Mapping[str, Any], plan_key: str = "") -> dict[LimitKey, int]:
    """Parse a stored limit map into the closed LimitKey enum.

    Unknown keys and values that are not non-negative integers are dropped.

    Args:
        raw: Limit map as stored (string keys).
        plan_key: Plan the map belongs to, for log context.

    Returns:
        Map of known limits to non-negative integers.
    """
    limits: dict[LimitKey, int] = {}
    for key, value in raw.items():
        try:
            limit = LimitKey(key)
        except ValueError:
            logger.warning("unknown_limit_key_ignored", plan_key=plan_key, key=key)
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.warning("invalid_limit_value_ignored", plan_key=plan_key, key=key)
            continue
        limits[limit] = value
    return limits
