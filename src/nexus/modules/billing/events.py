"""Typed Stripe webhook events.

Verified webhook payloads are parsed into one variant per event kind the
reconciler understands, plus ``Unknown`` for everything else:

    CheckoutCompleted | SubscriptionUpdated | SubscriptionDeleted
    | InvoiceSucceeded | InvoiceFailed | Unknown

Parsing raises ``pydantic.ValidationError`` (a ``ValueError``) when the
envelope or a recognized object is malformed.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


# ============================================================
# Stripe Payload Schemas
# ============================================================


class EventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: dict[str, Any]


class StripeEventEnvelope(BaseModel):
    """The outer shape shared by every Stripe event."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: EventData


class StripeObjectRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class SubscriptionSnapshot(BaseModel):
    """The subscription fields mirrored into the local row.

    Stripe sends timestamps as Unix seconds; pydantic turns them into
    UTC datetimes.
    """

    id: str
    customer_id: str | None = None
    status: str
    trial_end: datetime | None = None
    current_period_end: datetime | None = None
    product_id: str | None = None

    @classmethod
    def from_stripe(cls, obj: dict[str, Any]) -> "SubscriptionSnapshot":
        """Build a snapshot from a Stripe subscription object.

        Newer API versions moved ``current_period_end`` onto subscription
        items, so the first item is used as a fallback.
        """
        items = (obj.get("items") or {}).get("data") or []
        first_item: dict[str, Any] = items[0] if items else {}
        price = first_item.get("price") or first_item.get("plan") or {}

        return cls.model_validate(
            {
                "id": obj.get("id"),
                "customer_id": expandable_id(obj.get("customer")),
                "status": obj.get("status"),
                "trial_end": obj.get("trial_end"),
                "current_period_end": obj.get("current_period_end")
                or first_item.get("current_period_end"),
                "product_id": expandable_id(price.get("product")),
            }
        )


def expandable_id(value: Any) -> str | None:
    """Return the ID of a Stripe field that may be an ID or an expanded object."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    """Find the subscription an invoice belongs to, if any."""
    subscription = expandable_id(invoice.get("subscription"))
    if subscription:
        return subscription
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return expandable_id(details.get("subscription"))


# ============================================================
# Event Variants
# ============================================================


@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: str
    session_id: str
    workspace_id: str | None
    customer_id: str | None
    subscription_id: str | None


@dataclass(frozen=True)
class SubscriptionUpdated:
    """``customer.subscription.created`` or ``customer.subscription.updated``."""

    event_id: str
    event_type: str
    subscription: SubscriptionSnapshot


@dataclass(frozen=True)
class SubscriptionDeleted:
    event_id: str
    subscription_id: str


@dataclass(frozen=True)
class InvoiceSucceeded:
    event_id: str
    invoice_id: str | None
    subscription_id: str | None


@dataclass(frozen=True)
class InvoiceFailed:
    event_id: str
    invoice_id: str | None
    subscription_id: str | None


@dataclass(frozen=True)
class Unknown:
    event_id: str
    event_type: str


BillingEvent = (
    CheckoutCompleted
    | SubscriptionUpdated
    | SubscriptionDeleted
    | InvoiceSucceeded
    | InvoiceFailed
    | Unknown
)

SUBSCRIPTION_UPSERT_EVENTS = frozenset(
    {"customer.subscription.created", "customer.subscription.updated"}
)


def parse_event(payload: dict[str, Any]) -> BillingEvent:
    """Parse a verified Stripe event payload into its variant.

    Args:
        payload: The decoded event JSON

    Returns:
        The typed event

    Raises:
        pydantic.ValidationError: If the payload is malformed
    """
    envelope = StripeEventEnvelope.model_validate(payload)
    obj = envelope.data.object

    if envelope.type == "checkout.session.completed":
        return CheckoutCompleted(
            event_id=envelope.id,
            session_id=str(obj.get("id", "")),
            workspace_id=obj.get("client_reference_id") or None,
            customer_id=expandable_id(obj.get("customer")),
            subscription_id=expandable_id(obj.get("subscription")),
        )

    if envelope.type in SUBSCRIPTION_UPSERT_EVENTS:
        return SubscriptionUpdated(
            event_id=envelope.id,
            event_type=envelope.type,
            subscription=SubscriptionSnapshot.from_stripe(obj),
        )

    if envelope.type == "customer.subscription.deleted":
        return SubscriptionDeleted(
            event_id=envelope.id,
            subscription_id=StripeObjectRef.model_validate(obj).id,
        )

    if envelope.type == "invoice.payment_succeeded":
        return InvoiceSucceeded(
            event_id=envelope.id,
            invoice_id=obj.get("id"),
            subscription_id=invoice_subscription_id(obj),
        )

    if envelope.type == "invoice.payment_failed":
        return InvoiceFailed(
            event_id=envelope.id,
            invoice_id=obj.get("id"),
            subscription_id=invoice_subscription_id(obj),
        )

    return Unknown(event_id=envelope.id, event_type=envelope.type)
