"""Stripe client wrapper for async operations.

The Stripe SDK is blocking, so every call runs in a worker thread and is
bounded by ``STRIPE_TIMEOUT_SECONDS``. Results are returned as plain
dicts so callers never depend on SDK object types.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import stripe

from nexus.config import settings


def configure_stripe() -> None:
    """Configure the Stripe SDK with API key."""
    stripe.api_key = settings.stripe_secret_key


class StripeClient:
    """Async wrapper for the Stripe API operations the app needs."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the Stripe client.

        Args:
            timeout: Per-call timeout in seconds, defaults to settings
        """
        configure_stripe()
        self.timeout = timeout or settings.stripe_timeout_seconds

    async def _call(
        self, func: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> dict[str, Any]:
        result = await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs),
            timeout=self.timeout,
        )
        return result.to_dict()

    # ============================================================
    # Customers
    # ============================================================

    async def create_customer(
        self,
        email: str | None = None,
        name: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create a new Stripe customer."""
        return await self._call(
            stripe.Customer.create,
            email=email,
            name=name,
            metadata=metadata or {},
        )

    # ============================================================
    # Checkout Sessions
    # ============================================================

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        client_reference_id: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create a subscription-mode Stripe Checkout session.

        ``client_reference_id`` comes back on ``checkout.session.completed``
        and is how the webhook finds the workspace again.
        """
        return await self._call(
            stripe.checkout.Session.create,
            customer=customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=client_reference_id,
            subscription_data={"metadata": metadata or {}},
        )

    # ============================================================
    # Subscriptions and Products
    # ============================================================

    async def get_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Retrieve a Stripe subscription."""
        return await self._call(stripe.Subscription.retrieve, subscription_id)

    async def get_product(self, product_id: str) -> dict[str, Any]:
        """Retrieve a Stripe product."""
        return await self._call(stripe.Product.retrieve, product_id)

    # ============================================================
    # Webhooks
    # ============================================================

    @staticmethod
    def construct_webhook_event(
        payload: bytes, sig_header: str, webhook_secret: str, tolerance: int
    ) -> dict[str, Any]:
        """Verify a webhook signature and return the event as a dict.

        Raises:
            stripe.SignatureVerificationError: If the signature is invalid
            ValueError: If the payload is not valid JSON
        """
        event = stripe.Webhook.construct_event(
            payload, sig_header, webhook_secret, tolerance=tolerance
        )
        return event.to_dict()


def get_stripe_client() -> StripeClient:
    """Dependency that provides a Stripe client."""
    return StripeClient()
