"""Workspace access checking logic.

This module resolves a caller's membership and effective role inside a
workspace and provides the role checks every tenant-scoped route relies
on. The checks only read; they never write.
"""

from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.auth.schemas import Identity
from nexus.core.errors import ForbiddenError
from nexus.core.permissions.roles import WorkspaceRole
from nexus.modules.workspaces.models import Workspace, WorkspaceMember


logger = structlog.get_logger()

NO_ACCESS_MESSAGE = "You do not have access to this workspace"

ROLE_MESSAGES = {
    WorkspaceRole.MEMBER: NO_ACCESS_MESSAGE,
    WorkspaceRole.ADMIN: "This action requires admin or owner privileges",
    WorkspaceRole.OWNER: "This action requires owner privileges",
}


@dataclass(frozen=True)
class WorkspaceAccess:
    """The outcome of a successful access check.

    Attributes:
        identity: The authenticated caller
        workspace: The workspace being accessed
        membership: The caller's membership row, if one exists
        role: The caller's effective role
    """

    identity: Identity
    workspace: Workspace
    membership: WorkspaceMember | None
    role: WorkspaceRole

    @property
    def workspace_id(self) -> UUID:
        return self.workspace.id

    @property
    def is_owner(self) -> bool:
        return self.workspace.owner_id == self.identity.id


def effective_role(
    workspace: Workspace,
    membership: WorkspaceMember | None,
    user_id: UUID,
) -> WorkspaceRole | None:
    """Compute a user's effective role in a workspace.

    Args:
        workspace: The workspace
        membership: The user's membership row, if any
        user_id: The user's identity

    Returns:
        The effective role, or None when the user has no access
    """
    if workspace.owner_id == user_id:
        return WorkspaceRole.OWNER
    if membership is None:
        return None
    return WorkspaceRole(membership.role)


class AccessChecker:
    """Service that authorizes identities against workspaces."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def authorize(
        self, identity: Identity, workspace_id: UUID
    ) -> WorkspaceAccess:
        """Resolve the caller's access to a workspace.

        A missing workspace and a missing membership are reported the same
        way so that callers cannot probe which workspaces exist.

        Args:
            identity: The authenticated caller
            workspace_id: The workspace being accessed

        Returns:
            The resolved access

        Raises:
            ForbiddenError: If the caller has no access
        """
        stmt = (
            select(Workspace, WorkspaceMember)
            .outerjoin(
                WorkspaceMember,
                and_(
                    WorkspaceMember.workspace_id == Workspace.id,
                    WorkspaceMember.user_id == identity.id,
                ),
            )
            .where(Workspace.id == workspace_id)
        )
        row = (await self.session.execute(stmt)).first()

        role = effective_role(row[0], row[1], identity.id) if row else None
        if row is None or role is None:
            logger.warning(
                "workspace_access_denied",
                workspace_id=str(workspace_id),
                user_id=str(identity.id),
            )
            raise ForbiddenError(NO_ACCESS_MESSAGE, error_code="not_a_member")

        workspace, membership = row
        return WorkspaceAccess(
            identity=identity,
            workspace=workspace,
            membership=membership,
            role=role,
        )


def require_role(access: WorkspaceAccess, minimum_role: WorkspaceRole) -> None:
    """Fail unless the caller's effective role is at least ``minimum_role``.

    Raises:
        ForbiddenError: If the role is insufficient
    """
    if minimum_role is WorkspaceRole.OWNER:
        require_owner(access)
        return

    if not access.role.at_least(minimum_role):
        logger.warning(
            "workspace_role_insufficient",
            workspace_id=str(access.workspace_id),
            role=access.role.value,
            required_role=minimum_role.value,
        )
        raise ForbiddenError(
            ROLE_MESSAGES[minimum_role],
            error_code="insufficient_role",
            details={"required_role": minimum_role.value},
        )


def require_owner(access: WorkspaceAccess) -> None:
    """Fail unless the caller is the workspace's owner.

    Checked against ``Workspace.owner_id``, never a membership role.

    Raises:
        ForbiddenError: If the caller is not the owner
    """
    if not access.is_owner:
        logger.warning(
            "workspace_owner_required",
            workspace_id=str(access.workspace_id),
            role=access.role.value,
        )
        raise ForbiddenError(
            ROLE_MESSAGES[WorkspaceRole.OWNER],
            error_code="owner_required",
            details={"required_role": WorkspaceRole.OWNER.value},
        )


def ensure_not_owner(
    access: WorkspaceAccess,
    target_user_id: UUID,
    message: str,
) -> None:
    """Fail when a membership mutation targets the workspace owner.

    Applies to every actor, the owner included.

    Args:
        access: The caller's resolved access
        target_user_id: The user whose membership would change
        message: Error message describing the refused action

    Raises:
        ForbiddenError: If the target is the owner
    """
    if target_user_id == access.workspace.owner_id:
        logger.warning(
            "owner_membership_protected",
            workspace_id=str(access.workspace_id),
            target_user_id=str(target_user_id),
        )
        raise ForbiddenError(message, error_code="owner_protected")
