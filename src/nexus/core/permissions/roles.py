"""Workspace roles and their ordering."""

from enum import StrEnum


class WorkspaceRole(StrEnum):
    """Privilege levels inside a workspace, ordered ``member < admin < owner``.

    ``owner`` is never stored on a membership; it is implied by
    ``Workspace.owner_id``.
    """

    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def at_least(self, other: "WorkspaceRole") -> bool:
        """Check whether this role is ``other`` or higher."""
        return self.rank >= other.rank


_RANKS = {
    WorkspaceRole.MEMBER: 0,
    WorkspaceRole.ADMIN: 1,
    WorkspaceRole.OWNER: 2,
}

# Roles that can be stored on a membership or invitation
GRANTABLE_ROLES = frozenset({WorkspaceRole.MEMBER, WorkspaceRole.ADMIN})
