"""Subscription repository for database operations.

Each write is a single SQL statement so that a subscription row is
never left partially updated.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.modules.billing.models import Subscription


_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SubscriptionRepository:
    """Repository for Subscription database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_workspace(self, workspace_id: UUID) -> Subscription | None:
        """Get a workspace's subscription.

        Args:
            workspace_id: The workspace's UUID

        Returns:
            The subscription if one exists, None otherwise
        """
        stmt = (
            select(Subscription)
            .where(Subscription.workspace_id == workspace_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_for_workspace(
        self, workspace_id: UUID, values: dict[str, Any]
    ) -> Subscription:
        """Insert or update a workspace's subscription in one statement.

        Keyed on ``workspace_id`` so a workspace never gets a second row.

        Args:
            workspace_id: The workspace's UUID
            values: Column values to write

        Returns:
            The stored subscription
        """
        insert = _UPSERT_INSERTS[self.session.bind.dialect.name]
        stmt = insert(Subscription).values(workspace_id=workspace_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Subscription.workspace_id],
            set_={**values, "updated_at": func.now()},
        )
        await self.session.execute(stmt)

        subscription = await self.get_by_workspace(workspace_id)
        if subscription is None:
            raise RuntimeError(f"Subscription upsert for {workspace_id} wrote no row")
        return subscription

    async def exists_by_stripe_subscription_id(
        self, stripe_subscription_id: str
    ) -> bool:
        """Check whether a row mirrors the given Stripe subscription."""
        stmt = select(
            select(Subscription.id)
            .where(Subscription.stripe_subscription_id == stripe_subscription_id)
            .exists()
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def update_by_stripe_subscription_id(
        self, stripe_subscription_id: str, values: dict[str, Any]
    ) -> int:
        """Update the row for a Stripe subscription in one statement.

        Args:
            stripe_subscription_id: Stripe subscription ID
            values: Column values to write

        Returns:
            Number of rows updated (0 or 1)
        """
        stmt = (
            update(Subscription)
            .where(Subscription.stripe_subscription_id == stripe_subscription_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

