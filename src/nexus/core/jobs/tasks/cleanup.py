"""Cleanup tasks for expired data."""

from datetime import UTC, datetime
from typing import Any

import structlog

from nexus.modules.workspaces.repos import InvitationRepository


log = structlog.get_logger()


async def purge_expired_invitations(ctx: dict[str, Any]) -> dict[str, int]:
    """Delete invitations whose expiry has passed.

    Expired invitations can no longer be accepted; an admin re-inviting
    the same address creates a fresh one.

    Args:
        ctx: Worker context containing the database session factory

    Returns:
        Dict with the number of invitations deleted
    """
    session_factory = ctx["db_session_factory"]
    now = datetime.now(UTC)

    async with session_factory() as session:
        deleted = await InvitationRepository(session).delete_expired(now)
        await session.commit()

    log.info("purge_expired_invitations_complete", invitations_deleted=deleted)

    return {"invitations_deleted": deleted}
