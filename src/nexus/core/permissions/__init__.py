"""Workspace access control: roles, checks and route guards."""

from nexus.core.permissions.checker import (
    AccessChecker,
    WorkspaceAccess,
    effective_role,
    ensure_not_owner,
    require_owner,
    require_role,
)
from nexus.core.permissions.dependencies import (
    AdminAccess,
    MemberAccess,
    OwnerAccess,
    authorize_workspace_access,
)
from nexus.core.permissions.roles import GRANTABLE_ROLES, WorkspaceRole


__all__ = [
    "GRANTABLE_ROLES",
    "AccessChecker",
    "AdminAccess",
    "MemberAccess",
    "OwnerAccess",
    "WorkspaceAccess",
    "WorkspaceRole",
    "authorize_workspace_access",
    "effective_role",
    "ensure_not_owner",
    "require_owner",
    "require_role",
]
