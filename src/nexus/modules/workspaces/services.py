"""Workspace, membership and invitation business logic."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from nexus.api.dependencies import DBSession
from nexus.config import settings
from nexus.core.auth import Identity, hash_token
from nexus.core.constants import INVITATION_TOKEN_BYTES
from nexus.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from nexus.core.permissions import (
    GRANTABLE_ROLES,
    WorkspaceAccess,
    WorkspaceRole,
    effective_role,
    ensure_not_owner,
)
from nexus.core.utils.text import generate_unique_slug, normalize_email
from nexus.modules.workspaces.models import (
    Workspace,
    WorkspaceInvitation,
    WorkspaceMember,
)
from nexus.modules.workspaces.repos import (
    InvitationRepository,
    MemberRepository,
    WorkspaceRepository,
)
from nexus.modules.workspaces.schemas import (
    InvitationCreate,
    WorkspaceCreate,
    WorkspaceUpdate,
)


logger = structlog.get_logger()


def _parse_grantable_role(value: str) -> WorkspaceRole:
    """Parse a role that may be stored on a membership or invitation.

    Raises:
        ValidationError: If the role is unknown or is ``owner``
    """
    if value not in {role.value for role in GRANTABLE_ROLES}:
        raise ValidationError(
            "Invalid role",
            error_code="invalid_role",
            errors=[{"field": "role", "message": "Role must be member or admin"}],
        )
    return WorkspaceRole(value)


class WorkspaceService:
    """Service for workspace lifecycle operations."""

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.workspace_repo = WorkspaceRepository(db)
        self.member_repo = MemberRepository(db)

    async def list_workspaces(
        self, identity: Identity
    ) -> list[tuple[Workspace, WorkspaceRole]]:
        """List the caller's workspaces with their effective role in each."""
        rows = await self.workspace_repo.list_for_user(identity.id)
        result: list[tuple[Workspace, WorkspaceRole]] = []
        for workspace, membership in rows:
            role = effective_role(workspace, membership, identity.id)
            if role is not None:
                result.append((workspace, role))
        return result

    async def create_workspace(
        self, identity: Identity, data: WorkspaceCreate
    ) -> Workspace:
        """Create a workspace owned by the caller.

        The owner also gets a membership row (stored as ``admin``) so
        that member listings include them.

        Args:
            identity: The caller, who becomes owner
            data: Workspace creation data

        Returns:
            The created workspace
        """
        workspace = await self.workspace_repo.create(
            Workspace(
                name=data.name.strip(),
                slug=generate_unique_slug(data.name),
                owner_id=identity.id,
            )
        )
        await self.member_repo.create(
            WorkspaceMember(
                workspace_id=workspace.id,
                user_id=identity.id,
                email=identity.email,
                full_name=identity.full_name,
                role=WorkspaceRole.ADMIN.value,
            )
        )

        logger.info(
            "workspace_created",
            workspace_id=str(workspace.id),
            owner_id=str(identity.id),
        )
        return workspace

    async def update_workspace(
        self, access: WorkspaceAccess, data: WorkspaceUpdate
    ) -> Workspace:
        """Update a workspace's name and/or logo."""
        workspace = access.workspace
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name") is not None:
            workspace.name = changes["name"].strip()
        if "logo_url" in changes:
            workspace.logo_url = changes["logo_url"]

        workspace = await self.workspace_repo.update(workspace)
        logger.info(
            "workspace_updated",
            workspace_id=str(workspace.id),
            fields=sorted(changes),
        )
        return workspace

    async def delete_workspace(self, access: WorkspaceAccess) -> None:
        """Delete a workspace and everything it owns."""
        await self.workspace_repo.delete(access.workspace_id)
        logger.info("workspace_deleted", workspace_id=str(access.workspace_id))


class MemberService:
    """Service for membership management.

    The workspace owner is never a valid target for role changes or
    removal, whoever the actor is.
    """

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.member_repo = MemberRepository(db)

    async def list_members(
        self, access: WorkspaceAccess
    ) -> list[tuple[WorkspaceMember, WorkspaceRole]]:
        """List members with their effective roles."""
        members = await self.member_repo.list_by_workspace(access.workspace_id)
        return [
            (member, effective_role(access.workspace, member, member.user_id))
            for member in members
        ]

    async def _get_member(
        self, access: WorkspaceAccess, user_id: UUID
    ) -> WorkspaceMember:
        member = await self.member_repo.get(access.workspace_id, user_id)
        if not member:
            raise NotFoundError(
                "Member not found",
                resource="member",
                resource_id=str(user_id),
            )
        return member

    async def update_member_role(
        self, access: WorkspaceAccess, user_id: UUID, role: str
    ) -> WorkspaceMember:
        """Change a member's role.

        Args:
            access: The caller's access (admin or owner)
            user_id: The member to change
            role: New role, ``member`` or ``admin``

        Returns:
            The updated membership

        Raises:
            ForbiddenError: If the target is the workspace owner
            ValidationError: If the role is not grantable
            NotFoundError: If the user is not a member
        """
        ensure_not_owner(
            access, user_id, "Cannot change the role of the workspace owner"
        )
        new_role = _parse_grantable_role(role)
        member = await self._get_member(access, user_id)

        previous_role = member.role
        member.role = new_role.value
        member = await self.member_repo.update(member)

        logger.info(
            "member_role_changed",
            workspace_id=str(access.workspace_id),
            target_user_id=str(user_id),
            previous_role=previous_role,
            role=new_role.value,
        )
        return member

    async def remove_member(self, access: WorkspaceAccess, user_id: UUID) -> None:
        """Remove a member from the workspace.

        Raises:
            ForbiddenError: If the target is the workspace owner
            NotFoundError: If the user is not a member
        """
        ensure_not_owner(access, user_id, "Cannot remove the workspace owner")
        member = await self._get_member(access, user_id)
        await self.member_repo.delete(member)

        logger.info(
            "member_removed",
            workspace_id=str(access.workspace_id),
            target_user_id=str(user_id),
        )


class InvitationService:
    """Service for creating, listing, cancelling and accepting invitations.

    Only a SHA-256 hash of each token is stored; the raw token is returned
    once, when the invitation is created.
    """

    def __init__(self, db: DBSession) -> None:
        self.db = db
        self.invitation_repo = InvitationRepository(db)
        self.member_repo = MemberRepository(db)
        self.workspace_repo = WorkspaceRepository(db)

    async def create_invitation(
        self, access: WorkspaceAccess, data: InvitationCreate
    ) -> tuple[WorkspaceInvitation, str]:
        """Invite an email address to the workspace.

        Re-inviting an address replaces its pending invitation with a
        fresh token and expiry.

        Args:
            access: The caller's access (admin or owner)
            data: Invitee email and role

        Returns:
            Tuple of (invitation, raw_token)

        Raises:
            ValidationError: If the role is not grantable
            ConflictError: If the email already belongs to a member
        """
        role = _parse_grantable_role(data.role)
        email = normalize_email(data.email)

        if await self.member_repo.get_by_email(access.workspace_id, email):
            raise ConflictError(
                "User is already a member of this workspace",
                error_code="already_member",
                details={"email": email},
            )

        token = secrets.token_urlsafe(INVITATION_TOKEN_BYTES)
        expires_at = datetime.now(UTC) + timedelta(days=settings.invitation_expire_days)

        invitation = await self.invitation_repo.get_by_email(access.workspace_id, email)
        if invitation:
            invitation.role = role.value
            invitation.token_hash = hash_token(token)
            invitation.expires_at = expires_at
            invitation.created_by = access.identity.id
            invitation = await self.invitation_repo.update(invitation)
        else:
            invitation = await self.invitation_repo.create(
                WorkspaceInvitation(
                    workspace_id=access.workspace_id,
                    email=email,
                    role=role.value,
                    token_hash=hash_token(token),
                    expires_at=expires_at,
                    created_by=access.identity.id,
                )
            )

        logger.info(
            "invitation_created",
            workspace_id=str(access.workspace_id),
            invitation_id=str(invitation.id),
            role=role.value,
        )
        return invitation, token

    async def list_invitations(
        self, access: WorkspaceAccess
    ) -> list[tuple[WorkspaceInvitation, WorkspaceMember | None]]:
        """List pending invitations with the inviting member, if still present."""
        return await self.invitation_repo.list_by_workspace(access.workspace_id)

    async def cancel_invitation(
        self, access: WorkspaceAccess, invitation_id: UUID
    ) -> None:
        """Cancel (delete) an invitation.

        Raises:
            NotFoundError: If the invitation does not exist in this workspace
        """
        invitation = await self.invitation_repo.get_by_id(
            access.workspace_id, invitation_id
        )
        if not invitation:
            raise NotFoundError(
                "Invitation not found",
                resource="invitation",
                resource_id=str(invitation_id),
            )
        await self.invitation_repo.delete(invitation)
        logger.info(
            "invitation_cancelled",
            workspace_id=str(access.workspace_id),
            invitation_id=str(invitation_id),
        )

    async def accept_invitation(
        self, identity: Identity, token: str
    ) -> tuple[Workspace, WorkspaceRole]:
        """Accept an invitation and join its workspace.

        The invitation is consumed. A caller who is already a member keeps
        their existing membership.

        Args:
            identity: The caller
            token: Raw invitation token

        Returns:
            Tuple of (workspace, effective_role)

        Raises:
            ValidationError: If the token is unknown or expired
            ForbiddenError: If the invitation is addressed to another email
        """
        invitation = await self.invitation_repo.get_pending_by_hash(
            hash_token(token), datetime.now(UTC)
        )
        if not invitation:
            raise ValidationError(
                "Invalid or expired invitation",
                error_code="invalid_invitation",
            )

        if normalize_email(identity.email) != invitation.email:
            logger.warning(
                "invitation_email_mismatch",
                invitation_id=str(invitation.id),
                user_id=str(identity.id),
            )
            raise ForbiddenError(
                "This invitation was sent to a different email address",
                error_code="invitation_email_mismatch",
            )

        workspace_id = invitation.workspace_id
        membership = await self.member_repo.get(workspace_id, identity.id)
        if membership is None:
            membership = await self.member_repo.create(
                WorkspaceMember(
                    workspace_id=workspace_id,
                    user_id=identity.id,
                    email=identity.email,
                    full_name=identity.full_name,
                    role=invitation.role,
                )
            )

        await self.invitation_repo.delete(invitation)

        workspace = await self.workspace_repo.get_by_id(workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found", resource="workspace")

        logger.info(
            "invitation_accepted",
            workspace_id=str(workspace_id),
            user_id=str(identity.id),
            role=membership.role,
        )
        role = effective_role(workspace, membership, identity.id)
        return workspace, role or WorkspaceRole(membership.role)


# Type aliases for dependency injection
WorkspaceSvc = Annotated[WorkspaceService, Depends(WorkspaceService)]
MemberSvc = Annotated[MemberService, Depends(MemberService)]
InvitationSvc = Annotated[InvitationService, Depends(InvitationService)]
