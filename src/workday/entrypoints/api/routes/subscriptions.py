"""Subscription API routes: public catalog, admin plan editing, plan assignment."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from workday.core.entitlements.features import Plan
from workday.core.entitlements.service import SubscriptionService
from workday.core.entitlements.types import SubscriptionPlan
from workday.entrypoints.api.deps import get_subscription_service
from workday.entrypoints.api.middleware.entitlements import RequireSession

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]


class PlanListResponse(BaseModel):
    """Plans ordered by monthly price."""

    plans: list[SubscriptionPlan]


class UpdatePlanRequest(BaseModel):
    """Plan update request body.

    Unknown feature or limit keys are accepted and dropped.
    """

    key: Plan
    name: str = Field(..., min_length=1, max_length=80)
    price_monthly: int = Field(..., ge=0)
    features: dict[str, bool] = Field(default_factory=dict)
    limits: dict[str, Annotated[int, Field(ge=0)]] = Field(default_factory=dict)


class SubscribeRequest(BaseModel):
    """Subscribe request body."""

    plan_key: Plan


class SubscribeResponse(BaseModel):
    """Result of a plan change."""

    ok: bool = True
    plan_key: str


@router.get("/catalog", response_model=PlanListResponse)
async def get_catalog(
    identity: RequireSession,
    service: SubscriptionServiceDep,
) -> PlanListResponse:
    """List the plan catalog for any signed-in user."""
    return PlanListResponse(plans=await service.list_catalog())


@router.get("/plans", response_model=PlanListResponse)
async def list_plans(
    identity: RequireSession,
    service: SubscriptionServiceDep,
) -> PlanListResponse:
    """List plans for editing. Global admins only."""
    return PlanListResponse(plans=await service.list_plans(identity.user_id))


@router.put("/plans", response_model=SubscriptionPlan)
async def update_plan(
    body: UpdatePlanRequest,
    identity: RequireSession,
    service: SubscriptionServiceDep,
) -> SubscriptionPlan:
    """Replace a plan definition. Global admins only."""
    return await service.update_plan(
        identity.user_id,
        key=body.key.value,
        name=body.name.strip(),
        price_monthly=body.price_monthly,
        features=body.features,
        limits=body.limits,
    )


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    body: SubscribeRequest,
    identity: RequireSession,
    service: SubscriptionServiceDep,
) -> SubscribeResponse:
    """Assign a catalog plan to the caller."""
    plan_key = await service.subscribe(identity.user_id, body.plan_key.value)
    return SubscribeResponse(plan_key=plan_key)
