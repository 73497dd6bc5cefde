"""Billing service for checkout and subscription reads."""

from typing import Annotated

import stripe
import structlog
from fastapi import Depends

from nexus.api.dependencies import DBSession
from nexus.config import settings
from nexus.core.errors import ServiceUnavailableError, ValidationError
from nexus.core.permissions import WorkspaceAccess
from nexus.modules.billing.models import Subscription
from nexus.modules.billing.repos import SubscriptionRepository
from nexus.modules.billing.stripe_client import StripeClient, get_stripe_client


logger = structlog.get_logger()


class BillingService:
    """Service for Stripe checkout and subscription state.

    The subscription row itself is only written by the webhook
    reconciler; this service reads it and starts checkouts.
    """

    def __init__(
        self,
        db: DBSession,
        stripe_client: Annotated[StripeClient, Depends(get_stripe_client)],
    ) -> None:
        self.repo = SubscriptionRepository(db)
        self.stripe = stripe_client

    async def get_subscription(self, access: WorkspaceAccess) -> Subscription | None:
        """Get the workspace's subscription, if it has one."""
        return await self.repo.get_by_workspace(access.workspace_id)

    async def create_checkout_session(
        self, access: WorkspaceAccess, plan_id: str
    ) -> str:
        """Start a Stripe Checkout session for a plan.

        The workspace's existing Stripe customer is reused; otherwise a new
        customer tagged with the workspace ID is created.

        Args:
            access: The caller's access (admin or owner)
            plan_id: creator, pro or enterprise

        Returns:
            The hosted checkout URL

        Raises:
            ValidationError: If the plan is unknown or has no configured price
            ServiceUnavailableError: If Stripe fails or times out
        """
        price_id = settings.plan_price_ids.get(plan_id)
        if not price_id:
            raise ValidationError(
                "Invalid plan",
                error_code="invalid_plan",
                errors=[{"field": "planId", "message": f"Unknown plan: {plan_id}"}],
            )

        workspace_id = str(access.workspace_id)
        existing = await self.repo.get_by_workspace(access.workspace_id)

        try:
            if existing and existing.stripe_customer_id:
                customer_id = existing.stripe_customer_id
            else:
                customer = await self.stripe.create_customer(
                    email=access.identity.email,
                    name=access.workspace.name,
                    metadata={"workspace_id": workspace_id},
                )
                customer_id = customer["id"]

            session = await self.stripe.create_checkout_session(
                customer_id=customer_id,
                price_id=price_id,
                success_url=f"{settings.frontend_url}/settings/billing?success=true",
                cancel_url=f"{settings.frontend_url}/settings/billing?canceled=true",
                client_reference_id=workspace_id,
                metadata={"workspace_id": workspace_id},
            )
        except (stripe.StripeError, TimeoutError) as e:
            logger.exception(
                "checkout_session_failed",
                workspace_id=workspace_id,
                plan_id=plan_id,
            )
            raise ServiceUnavailableError(
                "Billing provider unavailable",
                error_code="billing_provider_error",
            ) from e

        logger.info(
            "checkout_session_created",
            workspace_id=workspace_id,
            plan_id=plan_id,
            session_id=session.get("id"),
        )
        return session["url"]


# Type alias for dependency injection
BillingSvc = Annotated[BillingService, Depends(BillingService)]
