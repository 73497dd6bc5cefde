"""Unit tests for workspace role ordering."""

import pytest

from nexus.core.permissions import GRANTABLE_ROLES, WorkspaceRole


pytestmark = pytest.mark.unit


class TestWorkspaceRole:
    """Tests for the member < admin < owner ordering."""

    @pytest.mark.parametrize(
        ("role", "minimum", "expected"),
        [
            (WorkspaceRole.MEMBER, WorkspaceRole.MEMBER, True),
            (WorkspaceRole.MEMBER, WorkspaceRole.ADMIN, False),
            (WorkspaceRole.MEMBER, WorkspaceRole.OWNER, False),
            (WorkspaceRole.ADMIN, WorkspaceRole.MEMBER, True),
            (WorkspaceRole.ADMIN, WorkspaceRole.ADMIN, True),
            (WorkspaceRole.ADMIN, WorkspaceRole.OWNER, False),
            (WorkspaceRole.OWNER, WorkspaceRole.ADMIN, True),
            (WorkspaceRole.OWNER, WorkspaceRole.OWNER, True),
        ],
    )
    def test_at_least(self, role, minimum, expected):
        assert role.at_least(minimum) is expected

    def test_owner_is_not_grantable(self):
        """Ownership comes from the workspace, never from a stored role."""
        assert WorkspaceRole.OWNER not in GRANTABLE_ROLES
        assert GRANTABLE_ROLES == {WorkspaceRole.MEMBER, WorkspaceRole.ADMIN}

    def test_roles_are_strings(self):
        assert WorkspaceRole("admin") is WorkspaceRole.ADMIN
        assert WorkspaceRole.MEMBER == "member"
