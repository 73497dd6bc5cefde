"""Unit tests for the workspace access checker.

These tests verify:
- Membership and ownership resolution
- Uniform denial for strangers and unknown workspaces
- Role requirements and owner protection
"""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from nexus.core.auth import Identity
from nexus.core.errors import ForbiddenError
from nexus.core.permissions import (
    AccessChecker,
    WorkspaceRole,
    effective_role,
    ensure_not_owner,
    require_owner,
    require_role,
)
from nexus.modules.workspaces.models import Workspace


pytestmark = pytest.mark.unit


class TestAccessChecker:
    """Tests for AccessChecker.authorize."""

    async def test_owner_resolves_to_owner_role(
        self, db: AsyncSession, workspace: Workspace, owner: Identity
    ):
        """The owner's stored admin row does not hide ownership."""
        access = await AccessChecker(db).authorize(owner, workspace.id)

        assert access.role is WorkspaceRole.OWNER
        assert access.is_owner
        assert access.membership is not None
        assert access.membership.role == "admin"

    async def test_admin_and_member_roles(
        self,
        db: AsyncSession,
        workspace: Workspace,
        admin: Identity,
        member: Identity,
    ):
        checker = AccessChecker(db)

        access = await checker.authorize(admin, workspace.id)
        assert access.role is WorkspaceRole.ADMIN
        access = await checker.authorize(member, workspace.id)
        assert access.role is WorkspaceRole.MEMBER

    async def test_owner_without_membership_row(
        self, db: AsyncSession, owner: Identity
    ):
        """Ownership alone grants access."""
        workspace = Workspace(name="Solo", slug="solo-abc123", owner_id=owner.id)
        db.add(workspace)
        await db.commit()

        access = await AccessChecker(db).authorize(owner, workspace.id)

        assert access.role is WorkspaceRole.OWNER
        assert access.membership is None

    async def test_stranger_is_forbidden(
        self, db: AsyncSession, workspace: Workspace, stranger: Identity
    ):
        with pytest.raises(ForbiddenError) as exc_info:
            await AccessChecker(db).authorize(stranger, workspace.id)

        assert exc_info.value.error_code == "not_a_member"

    async def test_unknown_workspace_looks_like_non_membership(
        self, db: AsyncSession, workspace: Workspace, stranger: Identity
    ):
        """Unknown and foreign workspaces fail identically."""
        with pytest.raises(ForbiddenError) as unknown:
            await AccessChecker(db).authorize(stranger, uuid4())
        with pytest.raises(ForbiddenError) as foreign:
            await AccessChecker(db).authorize(stranger, workspace.id)

        assert unknown.value.message == foreign.value.message
        assert unknown.value.error_code == foreign.value.error_code
        assert unknown.value.status_code == foreign.value.status_code == 403


class TestRoleRequirements:
    """Tests for require_role, require_owner and ensure_not_owner."""

    async def test_member_below_admin(
        self, db: AsyncSession, workspace: Workspace, member: Identity
    ):
        access = await AccessChecker(db).authorize(member, workspace.id)

        require_role(access, WorkspaceRole.MEMBER)
        with pytest.raises(ForbiddenError) as exc_info:
            require_role(access, WorkspaceRole.ADMIN)

        assert exc_info.value.message == (
            "This action requires admin or owner privileges"
        )

    async def test_admin_is_not_owner(
        self, db: AsyncSession, workspace: Workspace, admin: Identity
    ):
        """An admin membership never satisfies an owner requirement."""
        access = await AccessChecker(db).authorize(admin, workspace.id)

        require_role(access, WorkspaceRole.ADMIN)
        with pytest.raises(ForbiddenError):
            require_role(access, WorkspaceRole.OWNER)
        with pytest.raises(ForbiddenError):
            require_owner(access)

    async def test_owner_passes_every_requirement(
        self, db: AsyncSession, workspace: Workspace, owner: Identity
    ):
        access = await AccessChecker(db).authorize(owner, workspace.id)

        for role in WorkspaceRole:
            require_role(access, role)
        require_owner(access)

    async def test_owner_cannot_target_themself(
        self, db: AsyncSession, workspace: Workspace, owner: Identity
    ):
        access = await AccessChecker(db).authorize(owner, workspace.id)

        with pytest.raises(ForbiddenError) as exc_info:
            ensure_not_owner(access, owner.id, "Cannot remove the workspace owner")

        assert exc_info.value.error_code == "owner_protected"

    async def test_other_targets_allowed(
        self, db: AsyncSession, workspace: Workspace, admin: Identity, member: Identity
    ):
        access = await AccessChecker(db).authorize(admin, workspace.id)

        ensure_not_owner(access, member.id, "Cannot remove the workspace owner")


class TestEffectiveRole:
    """Tests for effective_role."""

    def test_no_membership_no_ownership(self):
        workspace = Workspace(name="W", slug="w", owner_id=uuid4())

        assert effective_role(workspace, None, uuid4()) is None

    def test_owner_wins_over_membership(self):
        owner_id = uuid4()
        workspace = Workspace(name="W", slug="w", owner_id=owner_id)

        assert effective_role(workspace, None, owner_id) is WorkspaceRole.OWNER
