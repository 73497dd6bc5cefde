"""Workspace repositories for database operations."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from nexus.modules.workspaces.models import (
    Workspace,
    WorkspaceInvitation,
    WorkspaceMember,
)


class WorkspaceRepository:
    """Repository for Workspace database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace.

        Args:
            workspace: Workspace instance to create

        Returns:
            The created workspace with ID populated
        """
        self.session.add(workspace)
        await self.session.flush()
        await self.session.refresh(workspace)
        return workspace

    async def get_by_id(self, workspace_id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        return await self.session.get(Workspace, workspace_id)

    async def list_for_user(
        self, user_id: UUID
    ) -> list[tuple[Workspace, WorkspaceMember | None]]:
        """List workspaces a user owns or belongs to.

        Args:
            user_id: The user's identity

        Returns:
            (workspace, membership) pairs, oldest workspace first
        """
        stmt = (
            select(Workspace, WorkspaceMember)
            .outerjoin(
                WorkspaceMember,
                and_(
                    WorkspaceMember.workspace_id == Workspace.id,
                    WorkspaceMember.user_id == user_id,
                ),
            )
            .where(
                or_(
                    Workspace.owner_id == user_id,
                    WorkspaceMember.id.is_not(None),
                )
            )
            .order_by(Workspace.created_at, Workspace.name)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def update(self, workspace: Workspace) -> Workspace:
        """Flush pending changes on a workspace and reload it."""
        await self.session.flush()
        await self.session.refresh(workspace)
        return workspace

    async def delete(self, workspace_id: UUID) -> None:
        """Delete a workspace.

        Memberships, invitations and the subscription row go with it
        through ``ON DELETE CASCADE``.
        """
        await self.session.execute(
            delete(Workspace).where(Workspace.id == workspace_id)
        )
        await self.session.flush()


class MemberRepository:
    """Repository for WorkspaceMember database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, member: WorkspaceMember) -> WorkspaceMember:
        """Create a new membership."""
        self.session.add(member)
        await self.session.flush()
        await self.session.refresh(member)
        return member

    async def get(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get a user's membership in a workspace.

        Args:
            workspace_id: The workspace's UUID
            user_id: The member's identity

        Returns:
            The membership if found, None otherwise
        """
        stmt = select(WorkspaceMember).where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(
        self, workspace_id: UUID, email: str
    ) -> WorkspaceMember | None:
        """Get a membership by member email, case-insensitively."""
        stmt = select(WorkspaceMember).where(
            WorkspaceMember.workspace_id == workspace_id,
            func.lower(WorkspaceMember.email) == email.lower(),
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_by_workspace(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """List a workspace's members in join order."""
        stmt = (
            select(WorkspaceMember)
            .where(WorkspaceMember.workspace_id == workspace_id)
            .order_by(WorkspaceMember.created_at, WorkspaceMember.email)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, member: WorkspaceMember) -> WorkspaceMember:
        """Flush pending changes on a membership and reload it."""
        await self.session.flush()
        await self.session.refresh(member)
        return member

    async def delete(self, member: WorkspaceMember) -> None:
        """Delete a membership."""
        await self.session.delete(member)
        await self.session.flush()


class InvitationRepository:
    """Repository for WorkspaceInvitation database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, invitation: WorkspaceInvitation) -> WorkspaceInvitation:
        """Create a new invitation."""
        self.session.add(invitation)
        await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def get_by_id(
        self, workspace_id: UUID, invitation_id: UUID
    ) -> WorkspaceInvitation | None:
        """Get an invitation by ID, scoped to its workspace."""
        stmt = select(WorkspaceInvitation).where(
            WorkspaceInvitation.id == invitation_id,
            WorkspaceInvitation.workspace_id == workspace_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(
        self, workspace_id: UUID, email: str
    ) -> WorkspaceInvitation | None:
        """Get the invitation addressed to an email in a workspace."""
        stmt = select(WorkspaceInvitation).where(
            WorkspaceInvitation.workspace_id == workspace_id,
            WorkspaceInvitation.email == email,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_pending_by_hash(
        self, token_hash: str, now: datetime
    ) -> WorkspaceInvitation | None:
        """Get an unexpired invitation by token hash.

        Args:
            token_hash: SHA-256 hash of the invitation token
            now: Current time; invitations expiring at or before it are ignored

        Returns:
            The pending invitation, None if unknown or expired
        """
        stmt = select(WorkspaceInvitation).where(
            WorkspaceInvitation.token_hash == token_hash,
            WorkspaceInvitation.expires_at > now,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_workspace(
        self, workspace_id: UUID
    ) -> list[tuple[WorkspaceInvitation, WorkspaceMember | None]]:
        """List a workspace's invitations with the inviter's membership.

        Returns:
            (invitation, inviter) pairs, newest first; the inviter is None
            when they are no longer a member
        """
        inviter = aliased(WorkspaceMember)
        stmt = (
            select(WorkspaceInvitation, inviter)
            .outerjoin(
                inviter,
                and_(
                    inviter.workspace_id == WorkspaceInvitation.workspace_id,
                    inviter.user_id == WorkspaceInvitation.created_by,
                ),
            )
            .where(WorkspaceInvitation.workspace_id == workspace_id)
            .order_by(WorkspaceInvitation.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def update(self, invitation: WorkspaceInvitation) -> WorkspaceInvitation:
        """Flush pending changes on an invitation and reload it."""
        await self.session.flush()
        await self.session.refresh(invitation)
        return invitation

    async def delete(self, invitation: WorkspaceInvitation) -> None:
        """Delete an invitation."""
        await self.session.delete(invitation)
        await self.session.flush()

    async def delete_expired(self, before: datetime) -> int:
        """Delete invitations that expired before a point in time.

        Args:
            before: Delete invitations whose expiry is at or before this time

        Returns:
            Number of invitations deleted
        """
        result = await self.session.execute(
            delete(WorkspaceInvitation).where(WorkspaceInvitation.expires_at <= before)
        )
        await self.session.flush()
        return result.rowcount

