"""Subscription reconciliation from Stripe webhook events.

Converges a workspace's subscription row to Stripe's state. Handlers are
idempotent: replaying an event writes the same values again, so Stripe's
at-least-once delivery and retries are safe. Concurrent deliveries for
the same subscription are last-write-wins on the fields each carries.
"""

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.config import settings
from nexus.core.constants import DEFAULT_PLAN_ID
from nexus.modules.billing.events import (
    BillingEvent,
    CheckoutCompleted,
    InvoiceFailed,
    InvoiceSucceeded,
    SubscriptionDeleted,
    SubscriptionSnapshot,
    SubscriptionUpdated,
    Unknown,
)
from nexus.modules.billing.repos import SubscriptionRepository
from nexus.modules.billing.stripe_client import StripeClient
from nexus.modules.workspaces.models import Workspace


logger = structlog.get_logger()


class ReconcileOutcome(StrEnum):
    """What a handler did with an event."""

    UPSERTED = "upserted"
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    IGNORED = "ignored"


Handler = Callable[[Any], Awaitable[ReconcileOutcome]]


class SubscriptionReconciler:
    """Applies Stripe events to the local subscription table.

    One handler per event variant; ``handle`` dispatches on the variant's
    type. Handlers raise on unexpected failures so the webhook can answer
    with a 5xx and Stripe retries.
    """

    def __init__(
        self,
        session: AsyncSession,
        stripe_client: StripeClient,
        default_plan_id: str | None = None,
    ) -> None:
        self.repo = SubscriptionRepository(session)
        self.stripe = stripe_client
        self.session = session
        self.default_plan_id = (
            default_plan_id or settings.default_plan_id or DEFAULT_PLAN_ID
        )
        self._handlers: dict[type, Handler] = {
            CheckoutCompleted: self.handle_checkout_completed,
            SubscriptionUpdated: self.handle_subscription_updated,
            SubscriptionDeleted: self.handle_subscription_deleted,
            InvoiceSucceeded: self.handle_invoice_succeeded,
            InvoiceFailed: self.handle_invoice_failed,
            Unknown: self.handle_unknown,
        }

    async def handle(self, event: BillingEvent) -> ReconcileOutcome:
        """Dispatch an event to its handler."""
        return await self._handlers[type(event)](event)

    async def resolve_plan_id(self, product_id: str | None) -> str:
        """Resolve the plan from the product's ``metadata.plan_id``.

        Falls back to the default plan when the product has no plan
        metadata.
        """
        if not product_id:
            return self.default_plan_id
        product = await self.stripe.get_product(product_id)
        metadata = product.get("metadata") or {}
        return metadata.get("plan_id") or self.default_plan_id

    async def _snapshot_values(
        self, snapshot: SubscriptionSnapshot
    ) -> dict[str, Any]:
        return {
            "plan_id": await self.resolve_plan_id(snapshot.product_id),
            "status": snapshot.status,
            "trial_end": snapshot.trial_end,
            "current_period_end": snapshot.current_period_end,
        }

    # ============================================================
    # Handlers
    # ============================================================

    async def handle_checkout_completed(
        self, event: CheckoutCompleted
    ) -> ReconcileOutcome:
        """Create or refresh the workspace's row after a completed checkout."""
        if not event.workspace_id:
            logger.error(
                "checkout_missing_workspace",
                event_id=event.event_id,
                session_id=event.session_id,
            )
            return ReconcileOutcome.IGNORED

        try:
            workspace_id = UUID(event.workspace_id)
        except ValueError:
            logger.error(
                "checkout_invalid_workspace",
                event_id=event.event_id,
                client_reference_id=event.workspace_id,
            )
            return ReconcileOutcome.IGNORED

        if await self.session.get(Workspace, workspace_id) is None:
            logger.error(
                "checkout_unknown_workspace",
                event_id=event.event_id,
                workspace_id=str(workspace_id),
            )
            return ReconcileOutcome.IGNORED

        if not event.subscription_id:
            logger.warning(
                "checkout_without_subscription",
                event_id=event.event_id,
                workspace_id=str(workspace_id),
            )
            return ReconcileOutcome.IGNORED

        snapshot = SubscriptionSnapshot.from_stripe(
            await self.stripe.get_subscription(event.subscription_id)
        )
        values = await self._snapshot_values(snapshot)
        values["stripe_customer_id"] = event.customer_id or snapshot.customer_id
        values["stripe_subscription_id"] = snapshot.id

        subscription = await self.repo.upsert_for_workspace(workspace_id, values)
        logger.info(
            "subscription_upserted",
            event_id=event.event_id,
            workspace_id=str(workspace_id),
            plan_id=subscription.plan_id,
            status=subscription.status,
        )
        return ReconcileOutcome.UPSERTED

    async def handle_subscription_updated(
        self, event: SubscriptionUpdated
    ) -> ReconcileOutcome:
        """Mirror plan, status, trial and period changes.

        Unknown subscriptions are dropped before Stripe is asked for the plan.
        """
        subscription_id = event.subscription.id
        if not await self.repo.exists_by_stripe_subscription_id(subscription_id):
            return self._not_found(event.event_id, subscription_id, event.event_type)

        values = await self._snapshot_values(event.subscription)
        return await self._update(
            event.event_id, subscription_id, values, event.event_type
        )

    async def handle_subscription_deleted(
        self, event: SubscriptionDeleted
    ) -> ReconcileOutcome:
        """Mark the subscription canceled; the row is kept."""
        return await self._update(
            event.event_id, event.subscription_id, {"status": "canceled"}, "deleted"
        )

    async def handle_invoice_succeeded(
        self, event: InvoiceSucceeded
    ) -> ReconcileOutcome:
        """A paid invoice makes the subscription active again."""
        if not event.subscription_id:
            return ReconcileOutcome.IGNORED
        return await self._update(
            event.event_id,
            event.subscription_id,
            {"status": "active"},
            "invoice_paid",
        )

    async def handle_invoice_failed(self, event: InvoiceFailed) -> ReconcileOutcome:
        """A failed invoice payment puts the subscription past due."""
        if not event.subscription_id:
            return ReconcileOutcome.IGNORED
        return await self._update(
            event.event_id,
            event.subscription_id,
            {"status": "past_due"},
            "invoice_failed",
        )

    async def handle_unknown(self, event: Unknown) -> ReconcileOutcome:
        logger.info(
            "webhook_event_ignored",
            event_id=event.event_id,
            event_type=event.event_type,
        )
        return ReconcileOutcome.IGNORED

    async def _update(
        self,
        event_id: str,
        stripe_subscription_id: str,
        values: dict[str, Any],
        reason: str,
    ) -> ReconcileOutcome:
        updated = await self.repo.update_by_stripe_subscription_id(
            stripe_subscription_id, values
        )
        if not updated:
            return self._not_found(event_id, stripe_subscription_id, reason)

        logger.info(
            "subscription_updated",
            event_id=event_id,
            stripe_subscription_id=stripe_subscription_id,
            reason=reason,
            status=values.get("status"),
        )
        return ReconcileOutcome.UPDATED

    def _not_found(
        self, event_id: str, stripe_subscription_id: str, reason: str
    ) -> ReconcileOutcome:
        logger.warning(
            "subscription_not_found",
            event_id=event_id,
            stripe_subscription_id=stripe_subscription_id,
            reason=reason,
        )
        return ReconcileOutcome.NOT_FOUND
