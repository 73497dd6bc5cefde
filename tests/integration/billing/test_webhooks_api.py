"""Integration tests for the Stripe webhook endpoint."""

import json
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.config import settings
from nexus.modules.billing.models import Subscription
from nexus.modules.billing.repos import SubscriptionRepository
from nexus.modules.workspaces.models import Workspace
from tests.factories.stripe import (
    checkout_completed,
    sign_payload,
    signed_request,
    stripe_event,
    stripe_subscription,
)


pytestmark = pytest.mark.integration

WEBHOOK_URL = "/api/webhooks/stripe"


async def _subscription_count(db: AsyncSession) -> int:
    return (
        await db.execute(select(func.count()).select_from(Subscription))
    ).scalar_one()


async def _post_event(client: AsyncClient, event: dict):
    payload, headers = signed_request(event)
    return await client.post(WEBHOOK_URL, content=payload, headers=headers)


@pytest.fixture(autouse=True)
def stripe_subscription_lookup(stripe_client: AsyncMock) -> None:
    stripe_client.get_subscription.return_value = stripe_subscription()


class TestWebhookVerification:
    """Signature checks happen before anything is parsed or written."""

    async def test_missing_signature(
        self, client: AsyncClient, db: AsyncSession, workspace: Workspace
    ):
        response = await client.post(
            WEBHOOK_URL, content=json.dumps(checkout_completed(str(workspace.id)))
        )

        assert response.status_code == 400
        assert response.text.startswith("Webhook Error:")
        assert await _subscription_count(db) == 0

    async def test_wrong_secret(
        self, client: AsyncClient, db: AsyncSession, workspace: Workspace
    ):
        payload = json.dumps(checkout_completed(str(workspace.id)))

        response = await client.post(
            WEBHOOK_URL,
            content=payload,
            headers={"stripe-signature": sign_payload(payload, secret="whsec_other")},
        )

        assert response.status_code == 400
        assert await _subscription_count(db) == 0

    async def test_tampered_body(
        self, client: AsyncClient, db: AsyncSession, workspace: Workspace
    ):
        payload, headers = signed_request(checkout_completed(str(workspace.id)))
        tampered = payload.replace("cus_123", "cus_evil")

        response = await client.post(WEBHOOK_URL, content=tampered, headers=headers)

        assert response.status_code == 400
        assert response.text.startswith("Webhook Error:")
        assert await _subscription_count(db) == 0

    async def test_stale_timestamp(
        self, client: AsyncClient, db: AsyncSession, workspace: Workspace
    ):
        payload = json.dumps(checkout_completed(str(workspace.id)))
        signature = sign_payload(payload, timestamp=1_000_000_000)

        response = await client.post(
            WEBHOOK_URL, content=payload, headers={"stripe-signature": signature}
        )

        assert response.status_code == 400

    async def test_malformed_event(self, client: AsyncClient):
        """Signed but structurally invalid payloads are rejected, not retried."""
        payload = json.dumps({"object": "event", "type": "invoice.payment_failed"})

        response = await client.post(
            WEBHOOK_URL,
            content=payload,
            headers={"stripe-signature": sign_payload(payload)},
        )

        assert response.status_code == 400
        assert response.text == "Webhook Error: Invalid event payload"

    async def test_unconfigured_secret(
        self, client: AsyncClient, workspace: Workspace, monkeypatch
    ):
        payload, headers = signed_request(checkout_completed(str(workspace.id)))
        monkeypatch.setattr(settings, "stripe_webhook_secret", "")

        response = await client.post(WEBHOOK_URL, content=payload, headers=headers)

        assert response.status_code == 500


class TestWebhookReconciliation:
    """Verified events update the subscription table."""

    async def test_checkout_then_update(
        self, client: AsyncClient, db: AsyncSession, workspace: Workspace
    ):
        """Status and plan follow the update; the customer comes from checkout."""
        first = await _post_event(client, checkout_completed(str(workspace.id)))
        assert first.status_code == 200
        assert first.json() == {"received": True}

        second = await _post_event(
            client,
            stripe_event(
                "customer.subscription.updated",
                stripe_subscription(customer_id="cus_other", status="past_due"),
            ),
        )
        assert second.status_code == 200

        subscription = await SubscriptionRepository(db).get_by_workspace(workspace.id)
        assert subscription is not None
        assert subscription.status == "past_due"
        assert subscription.plan_id == "pro"
        assert subscription.stripe_customer_id == "cus_123"

    async def test_duplicate_delivery_is_idempotent(
        self, client: AsyncClient, db: AsyncSession, workspace: Workspace
    ):
        await _post_event(client, checkout_completed(str(workspace.id)))
        event = stripe_event(
            "customer.subscription.updated",
            stripe_subscription(status="trialing", trial_end=1_790_000_000),
        )

        responses = [await _post_event(client, event) for _ in range(3)]

        assert all(r.status_code == 200 for r in responses)
        assert await _subscription_count(db) == 1
        subscription = await SubscriptionRepository(db).get_by_workspace(workspace.id)
        assert subscription is not None
        assert subscription.status == "trialing"

    async def test_unhandled_event_is_acknowledged(
        self, client: AsyncClient, db: AsyncSession
    ):
        response = await _post_event(
            client, stripe_event("customer.created", {"id": "cus_1"})
        )

        assert response.status_code == 200
        assert await _subscription_count(db) == 0

    async def test_event_for_unknown_subscription_is_acknowledged(
        self, client: AsyncClient, db: AsyncSession
    ):
        response = await _post_event(
            client,
            stripe_event("customer.subscription.deleted", {"id": "sub_unknown"}),
        )

        assert response.status_code == 200
        assert await _subscription_count(db) == 0

    async def test_unknown_subscription_update_during_stripe_outage(
        self, client: AsyncClient, db: AsyncSession, stripe_client: AsyncMock
    ):
        stripe_client.get_product.side_effect = TimeoutError()

        response = await _post_event(
            client,
            stripe_event(
                "customer.subscription.updated",
                stripe_subscription(subscription_id="sub_unknown"),
            ),
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert await _subscription_count(db) == 0

    async def test_stripe_failure_returns_500_for_retry(
        self,
        client: AsyncClient,
        db: AsyncSession,
        workspace: Workspace,
        stripe_client: AsyncMock,
    ):
        stripe_client.get_subscription.side_effect = TimeoutError()

        response = await _post_event(client, checkout_completed(str(workspace.id)))

        assert response.status_code == 500
        assert response.text == "Server Error: Unable to process event"
        assert await _subscription_count(db) == 0
