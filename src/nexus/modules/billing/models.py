"""Billing database models."""

from datetime import datetime

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.constants import (
    MAX_PLAN_ID_LENGTH,
    MAX_STATUS_LENGTH,
    MAX_STRIPE_ID_LENGTH,
)
from nexus.core.database.base import Base, TimestampMixin, UUIDMixin, WorkspaceMixin


class Subscription(Base, UUIDMixin, TimestampMixin, WorkspaceMixin):
    """A workspace's subscription, mirrored from Stripe.

    At most one row per workspace. Rows are written only by the webhook
    reconciler and never deleted by it; cancellation is a status.

    Attributes:
        stripe_customer_id: Stripe customer (``cus_...``)
        stripe_subscription_id: Stripe subscription (``sub_...``)
        plan_id: Plan identifier (creator, pro, enterprise)
        status: Stripe subscription status, stored verbatim
        trial_end: End of the trial period, if any
        current_period_end: End of the current billing period
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        # Conflict target for the reconciler's upsert
        UniqueConstraint("workspace_id", name="uq_subscriptions_workspace"),
    )

    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH),
        nullable=True,
        index=True,
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(MAX_STRIPE_ID_LENGTH),
        nullable=True,
        unique=True,
        index=True,
    )
    plan_id: Mapped[str] = mapped_column(
        String(MAX_PLAN_ID_LENGTH),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        nullable=False,
    )
    trial_end: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    current_period_end: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Subscription(workspace_id={self.workspace_id}, "
            f"plan_id={self.plan_id}, status={self.status})>"
        )
