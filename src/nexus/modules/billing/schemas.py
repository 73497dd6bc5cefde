"""Pydantic schemas for billing operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionCreate(BaseModel):
    """Schema for starting a checkout.

    Accepts the camelCase names the web client sends.
    """

    workspace_id: UUID = Field(..., alias="workspaceId")
    plan_id: str = Field(..., alias="planId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class CheckoutSessionResponse(BaseModel):
    """Stripe-hosted checkout URL to redirect the user to."""

    url: str


class SubscriptionResponse(BaseModel):
    """Schema for subscription response data."""

    id: UUID
    workspace_id: UUID
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    plan_id: str
    status: str
    trial_end: datetime | None = None
    current_period_end: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionEnvelope(BaseModel):
    subscription: SubscriptionResponse | None = None
