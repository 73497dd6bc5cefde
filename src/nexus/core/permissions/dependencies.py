"""FastAPI dependencies that guard workspace-scoped routes.

Routes declare the minimum role they need through one of the type
aliases below instead of comparing roles themselves:

    @router.delete("/{workspace_id}")
    async def delete_workspace(access: OwnerAccess, ...):
        ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, Request

from nexus.api.dependencies import DBSession
from nexus.core.auth import CurrentIdentity, Identity
from nexus.core.permissions.checker import AccessChecker, WorkspaceAccess, require_role
from nexus.core.permissions.roles import WorkspaceRole


async def authorize_workspace_access(
    request: Request,
    db: DBSession,
    identity: Identity,
    workspace_id: UUID,
    minimum_role: WorkspaceRole = WorkspaceRole.MEMBER,
) -> WorkspaceAccess:
    """Authorize the caller and annotate the request with the result.

    On success the workspace ID and effective role are stored on
    ``request.state`` and bound into the log context.

    Raises:
        ForbiddenError: If the caller lacks access or the required role
    """
    access = await AccessChecker(db).authorize(identity, workspace_id)
    require_role(access, minimum_role)

    request.state.workspace_id = access.workspace_id
    request.state.workspace_role = access.role.value
    structlog.contextvars.bind_contextvars(
        workspace_id=str(access.workspace_id),
        workspace_role=access.role.value,
    )
    return access


def require_workspace_role(
    minimum_role: WorkspaceRole,
) -> Callable[..., Awaitable[WorkspaceAccess]]:
    """Build a dependency that requires ``minimum_role`` in the path's workspace."""

    async def dependency(
        workspace_id: UUID,
        request: Request,
        identity: CurrentIdentity,
        db: DBSession,
    ) -> WorkspaceAccess:
        return await authorize_workspace_access(
            request, db, identity, workspace_id, minimum_role
        )

    return dependency


MemberAccess = Annotated[
    WorkspaceAccess, Depends(require_workspace_role(WorkspaceRole.MEMBER))
]
AdminAccess = Annotated[
    WorkspaceAccess, Depends(require_workspace_role(WorkspaceRole.ADMIN))
]
OwnerAccess = Annotated[
    WorkspaceAccess, Depends(require_workspace_role(WorkspaceRole.OWNER))
]
