"""Unit tests for the subscription reconciler.

Each handler runs against an in-memory database with the Stripe client
mocked out.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import stripe
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.modules.billing.events import (
    InvoiceFailed,
    InvoiceSucceeded,
    SubscriptionDeleted,
    Unknown,
    parse_event,
)
from nexus.modules.billing.models import Subscription
from nexus.modules.billing.reconciler import ReconcileOutcome, SubscriptionReconciler
from nexus.modules.billing.repos import SubscriptionRepository
from nexus.modules.workspaces.models import Workspace
from tests.factories.stripe import checkout_completed, stripe_event, stripe_subscription


pytestmark = pytest.mark.unit


async def _count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Subscription))
    return result.scalar_one()


async def _stored(db: AsyncSession, workspace: Workspace) -> Subscription:
    subscription = await SubscriptionRepository(db).get_by_workspace(workspace.id)
    assert subscription is not None
    return subscription


@pytest.fixture
def reconciler(db: AsyncSession, stripe_client: AsyncMock) -> SubscriptionReconciler:
    stripe_client.get_subscription.return_value = stripe_subscription()
    return SubscriptionReconciler(db, stripe_client)


class TestCheckoutCompleted:
    """Tests for checkout.session.completed handling."""

    async def test_creates_subscription_row(
        self, db: AsyncSession, workspace: Workspace, reconciler: SubscriptionReconciler
    ):
        outcome = await reconciler.handle(
            parse_event(checkout_completed(str(workspace.id)))
        )

        assert outcome == ReconcileOutcome.UPSERTED
        subscription = await _stored(db, workspace)
        assert subscription.stripe_customer_id == "cus_123"
        assert subscription.stripe_subscription_id == "sub_123"
        assert subscription.plan_id == "pro"
        assert subscription.status == "active"

    async def test_second_checkout_updates_existing_row(
        self,
        db: AsyncSession,
        workspace: Workspace,
        reconciler: SubscriptionReconciler,
        stripe_client: AsyncMock,
    ):
        """A workspace never gets a second subscription row."""
        await reconciler.handle(parse_event(checkout_completed(str(workspace.id))))

        stripe_client.get_subscription.return_value = stripe_subscription(
            subscription_id="sub_456", customer_id="cus_123", status="trialing"
        )
        await reconciler.handle(
            parse_event(
                checkout_completed(str(workspace.id), subscription_id="sub_456")
            )
        )

        assert await _count(db) == 1
        subscription = await _stored(db, workspace)
        assert subscription.stripe_subscription_id == "sub_456"
        assert subscription.status == "trialing"

    async def test_missing_reference_is_ignored(
        self, db: AsyncSession, workspace: Workspace, reconciler: SubscriptionReconciler
    ):
        outcome = await reconciler.handle(parse_event(checkout_completed(None)))

        assert outcome == ReconcileOutcome.IGNORED
        assert await _count(db) == 0

    @pytest.mark.parametrize("reference", ["not-a-uuid", str(uuid4())])
    async def test_unknown_workspace_is_ignored(
        self,
        db: AsyncSession,
        workspace: Workspace,
        reconciler: SubscriptionReconciler,
        stripe_client: AsyncMock,
        reference: str,
    ):
        outcome = await reconciler.handle(parse_event(checkout_completed(reference)))

        assert outcome == ReconcileOutcome.IGNORED
        assert await _count(db) == 0
        stripe_client.get_subscription.assert_not_called()

    async def test_one_time_checkout_is_ignored(
        self, db: AsyncSession, workspace: Workspace, reconciler: SubscriptionReconciler
    ):
        outcome = await reconciler.handle(
            parse_event(checkout_completed(str(workspace.id), subscription_id=None))
        )

        assert outcome == ReconcileOutcome.IGNORED
        assert await _count(db) == 0

    async def test_product_without_plan_uses_default(
        self,
        db: AsyncSession,
        workspace: Workspace,
        reconciler: SubscriptionReconciler,
        stripe_client: AsyncMock,
    ):
        stripe_client.get_product.return_value = {"id": "prod_pro", "metadata": {}}

        await reconciler.handle(parse_event(checkout_completed(str(workspace.id))))

        assert (await _stored(db, workspace)).plan_id == "creator"


class TestSubscriptionUpdates:
    """Tests for subscription, invoice and deletion events."""

    @pytest.fixture
    async def subscribed(
        self, db: AsyncSession, workspace: Workspace, reconciler: SubscriptionReconciler
    ) -> Workspace:
        await reconciler.handle(parse_event(checkout_completed(str(workspace.id))))
        return workspace

    async def test_updated_event_mirrors_stripe(
        self,
        db: AsyncSession,
        subscribed: Workspace,
        reconciler: SubscriptionReconciler,
        stripe_client: AsyncMock,
    ):
        stripe_client.get_product.return_value = {
            "id": "prod_ent",
            "metadata": {"plan_id": "enterprise"},
        }
        event = parse_event(
            stripe_event(
                "customer.subscription.updated",
                stripe_subscription(
                    status="past_due",
                    product_id="prod_ent",
                    current_period_end=1_900_000_000,
                ),
            )
        )

        assert await reconciler.handle(event) == ReconcileOutcome.UPDATED

        subscription = await _stored(db, subscribed)
        assert subscription.status == "past_due"
        assert subscription.plan_id == "enterprise"
        period_end = subscription.current_period_end.replace(tzinfo=UTC)
        assert period_end == datetime.fromtimestamp(1_900_000_000, UTC)
        # Customer comes from the checkout and is untouched by updates
        assert subscription.stripe_customer_id == "cus_123"

    async def test_replayed_update_is_idempotent(
        self,
        db: AsyncSession,
        subscribed: Workspace,
        reconciler: SubscriptionReconciler,
    ):
        event = parse_event(
            stripe_event(
                "customer.subscription.updated",
                stripe_subscription(status="trialing", trial_end=1_790_000_000),
                event_id="evt_replayed",
            )
        )

        for _ in range(3):
            await reconciler.handle(event)
        after_replays = await _stored(db, subscribed)
        snapshot = (
            after_replays.status,
            after_replays.plan_id,
            after_replays.trial_end,
        )

        await reconciler.handle(event)
        again = await _stored(db, subscribed)

        assert (again.status, again.plan_id, again.trial_end) == snapshot
        assert await _count(db) == 1

    async def test_update_for_unknown_subscription(
        self,
        db: AsyncSession,
        subscribed: Workspace,
        reconciler: SubscriptionReconciler,
    ):
        """Events for subscriptions never checked out here change nothing."""
        event = parse_event(
            stripe_event(
                "customer.subscription.updated",
                stripe_subscription(subscription_id="sub_other", status="canceled"),
            )
        )

        assert await reconciler.handle(event) == ReconcileOutcome.NOT_FOUND
        assert (await _stored(db, subscribed)).status == "active"

    async def test_unknown_subscription_skips_stripe(
        self,
        subscribed: Workspace,
        stripe_client: AsyncMock,
        reconciler: SubscriptionReconciler,
    ):
        """An unknown subscription is acknowledged even while Stripe is down."""
        stripe_client.get_product.side_effect = stripe.APIConnectionError(
            "connection refused"
        )
        event = parse_event(
            stripe_event(
                "customer.subscription.updated",
                stripe_subscription(subscription_id="sub_nobody"),
            )
        )

        outcome = await reconciler.handle(event)

        assert outcome is ReconcileOutcome.NOT_FOUND
        assert outcome == "not_found"
        stripe_client.get_product.assert_not_awaited()

    async def test_deleted_marks_canceled_and_keeps_row(
        self,
        db: AsyncSession,
        subscribed: Workspace,
        reconciler: SubscriptionReconciler,
    ):
        outcome = await reconciler.handle(
            SubscriptionDeleted(event_id="evt_del", subscription_id="sub_123")
        )

        assert outcome == ReconcileOutcome.UPDATED
        assert (await _stored(db, subscribed)).status == "canceled"
        assert await _count(db) == 1

    async def test_invoice_failed_then_paid(
        self,
        db: AsyncSession,
        subscribed: Workspace,
        reconciler: SubscriptionReconciler,
    ):
        await reconciler.handle(
            InvoiceFailed(
                event_id="evt_f", invoice_id="in_1", subscription_id="sub_123"
            )
        )
        assert (await _stored(db, subscribed)).status == "past_due"

        await reconciler.handle(
            InvoiceSucceeded(
                event_id="evt_s", invoice_id="in_2", subscription_id="sub_123"
            )
        )
        assert (await _stored(db, subscribed)).status == "active"

    async def test_invoice_without_subscription_is_ignored(
        self, subscribed: Workspace, reconciler: SubscriptionReconciler
    ):
        outcome = await reconciler.handle(
            InvoiceFailed(event_id="evt_f", invoice_id="in_1", subscription_id=None)
        )

        assert outcome == ReconcileOutcome.IGNORED

    async def test_unknown_event_is_ignored(self, reconciler: SubscriptionReconciler):
        outcome = await reconciler.handle(
            Unknown(event_id="evt_u", event_type="customer.created")
        )

        assert outcome == ReconcileOutcome.IGNORED
