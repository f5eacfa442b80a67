"""Entitlements module for plan-based feature gating."""

from workday.core.entitlements.features import Feature, LimitKey, Plan
from workday.core.entitlements.interfaces import PlanCatalog
from workday.core.entitlements.types import Entitlements, SubscriptionPlan, UsageReport

__all__ = [
    "Feature",
    "LimitKey",
    "Plan",
    "PlanCatalog",
    "Entitlements",
    "SubscriptionPlan",
    "UsageReport",
]
