"""Stripe webhook endpoint.

The raw request body is verified against the ``stripe-signature`` header
before anything is parsed. Responses follow Stripe's conventions:
``{"received": true}`` on success, plain-text 400 for bad signatures or
payloads (not retried), plain-text 500 for processing failures (retried).
"""

from typing import Annotated, Any

import stripe
import structlog
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from nexus.api.dependencies import DBSession
from nexus.config import settings
from nexus.modules.billing.events import parse_event
from nexus.modules.billing.reconciler import SubscriptionReconciler
from nexus.modules.billing.stripe_client import StripeClient, get_stripe_client


logger = structlog.get_logger()

webhook_router = APIRouter(tags=["webhooks"])


@webhook_router.post(
    "/webhooks/stripe",
    status_code=status.HTTP_200_OK,
    summary="Stripe webhook endpoint",
    description="Receives and reconciles Stripe webhook events.",
    include_in_schema=False,
)
async def stripe_webhook(
    request: Request,
    db: DBSession,
    stripe_client: Annotated[StripeClient, Depends(get_stripe_client)],
    stripe_signature: Annotated[str | None, Header(alias="stripe-signature")] = None,
) -> Response:
    """Verify, parse and reconcile a Stripe event."""
    if not settings.stripe_webhook_secret:
        logger.error("webhook_secret_missing")
        return PlainTextResponse(
            "Server Error: webhook secret not configured",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    payload = await request.body()

    try:
        data: dict[str, Any] = StripeClient.construct_webhook_event(
            payload=payload,
            sig_header=stripe_signature or "",
            webhook_secret=settings.stripe_webhook_secret,
            tolerance=settings.stripe_webhook_tolerance,
        )
        event = parse_event(data)
    except stripe.SignatureVerificationError as e:
        logger.warning("webhook_signature_invalid", error=str(e))
        return PlainTextResponse(
            f"Webhook Error: {e.user_message or e}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except ValueError as e:
        logger.warning("webhook_payload_invalid", error=str(e))
        return PlainTextResponse(
            "Webhook Error: Invalid event payload",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    log = logger.bind(event_id=event.event_id, event_kind=type(event).__name__)
    log.info("webhook_received")

    reconciler = SubscriptionReconciler(db, stripe_client)
    try:
        outcome = await reconciler.handle(event)
        await db.commit()
    except Exception:
        log.exception("webhook_processing_failed")
        await db.rollback()
        return PlainTextResponse(
            "Server Error: Unable to process event",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    log.info("webhook_processed", outcome=outcome)
    return JSONResponse({"received": True})
