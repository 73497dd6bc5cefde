"""Billing API routes."""

from fastapi import APIRouter, Request

from nexus.api.dependencies import DBSession
from nexus.core.auth import CurrentIdentity
from nexus.core.permissions import (
    MemberAccess,
    WorkspaceRole,
    authorize_workspace_access,
)
from nexus.modules.billing.schemas import (
    CheckoutSessionCreate,
    CheckoutSessionResponse,
    SubscriptionEnvelope,
    SubscriptionResponse,
)
from nexus.modules.billing.services import BillingSvc
from nexus.modules.billing.webhooks import webhook_router


router = APIRouter(tags=["billing"])

# Webhooks are authenticated by Stripe signature, not bearer token
router.include_router(webhook_router)


@router.post(
    "/billing/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Create checkout session",
    description="Start a Stripe Checkout for a workspace plan. Admin or owner only.",
)
async def create_checkout_session(
    data: CheckoutSessionCreate,
    request: Request,
    identity: CurrentIdentity,
    db: DBSession,
    service: BillingSvc,
) -> CheckoutSessionResponse:
    """Create a Stripe Checkout session."""
    access = await authorize_workspace_access(
        request, db, identity, data.workspace_id, WorkspaceRole.ADMIN
    )
    url = await service.create_checkout_session(access, data.plan_id)
    return CheckoutSessionResponse(url=url)


@router.get(
    "/workspaces/{workspace_id}/subscription",
    response_model=SubscriptionEnvelope,
    summary="Get subscription",
    description="The workspace's subscription, or null before the first checkout.",
)
async def get_subscription(
    access: MemberAccess,
    service: BillingSvc,
) -> SubscriptionEnvelope:
    """Get the workspace's subscription."""
    subscription = await service.get_subscription(access)
    if subscription is None:
        return SubscriptionEnvelope(subscription=None)
    return SubscriptionEnvelope(
        subscription=SubscriptionResponse.model_validate(subscription)
    )
