"""Entitlement domain types."""

from pydantic import BaseModel, Field

from workday.core.entitlements.features import Feature, LimitKey


class SubscriptionPlan(BaseModel):
    """A row of the global plan catalog."""

    key: str
    name: str
    price_monthly: int = Field(default=0, ge=0)
    features: dict[Feature, bool] = Field(default_factory=dict)
    limits: dict[LimitKey, int] = Field(default_factory=dict)


class Entitlements(BaseModel):
    """Resolved features and limits for one user, computed per request."""

    plan_key: str
    plan_name: str
    features: dict[Feature, bool]
    limits: dict[LimitKey, int]
    is_admin: bool = False


class UsageReport(BaseModel):
    """Live usage counts compared against plan limits."""

    personal_workspaces: int = 0
    organizations: int = 0
    org_workspaces_per_org: int = 0
    org_members: int = 0
