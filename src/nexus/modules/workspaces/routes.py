"""Workspace API routes.

Provides endpoints for:
- Workspace CRUD
- Member listing, role changes and removal
- Invitations (create, list, cancel, accept)
"""

from uuid import UUID

from fastapi import APIRouter, status

from nexus.core.auth import CurrentIdentity
from nexus.core.permissions import (
    AdminAccess,
    MemberAccess,
    OwnerAccess,
    WorkspaceRole,
)
from nexus.modules.workspaces.models import (
    Workspace,
    WorkspaceInvitation,
    WorkspaceMember,
)
from nexus.modules.workspaces.schemas import (
    InvitationAccept,
    InvitationAcceptedResponse,
    InvitationCreate,
    InvitationCreatedResponse,
    InvitationListResponse,
    InvitationResponse,
    InviterResponse,
    MemberListResponse,
    MemberResponse,
    MemberRoleUpdate,
    MessageResponse,
    WorkspaceCreate,
    WorkspaceEnvelope,
    WorkspaceListResponse,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from nexus.modules.workspaces.services import InvitationSvc, MemberSvc, WorkspaceSvc


router = APIRouter(tags=["workspaces"])


def _workspace_response(workspace: Workspace, role: WorkspaceRole) -> WorkspaceResponse:
    return WorkspaceResponse(
        id=workspace.id,
        name=workspace.name,
        slug=workspace.slug,
        logo_url=workspace.logo_url,
        owner_id=workspace.owner_id,
        role=role.value,
        created_at=workspace.created_at,
        updated_at=workspace.updated_at,
    )


def _member_response(member: WorkspaceMember, role: WorkspaceRole) -> MemberResponse:
    return MemberResponse(
        id=member.id,
        user_id=member.user_id,
        email=member.email,
        full_name=member.full_name,
        role=role.value,
        joined_at=member.created_at,
    )


def _invitation_response(
    invitation: WorkspaceInvitation,
    inviter: WorkspaceMember | None = None,
) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        email=invitation.email,
        role=invitation.role,
        expires_at=invitation.expires_at,
        created_at=invitation.created_at,
        created_by=InviterResponse(
            id=invitation.created_by,
            email=inviter.email if inviter else None,
            full_name=inviter.full_name if inviter else None,
        ),
    )


# ============================================================
# Workspaces
# ============================================================


@router.get(
    "/workspaces",
    response_model=WorkspaceListResponse,
    summary="List workspaces",
    description="List every workspace the caller owns or belongs to.",
)
async def list_workspaces(
    identity: CurrentIdentity,
    service: WorkspaceSvc,
) -> WorkspaceListResponse:
    """List the caller's workspaces."""
    rows = await service.list_workspaces(identity)
    return WorkspaceListResponse(
        workspaces=[_workspace_response(workspace, role) for workspace, role in rows]
    )


@router.post(
    "/workspaces",
    response_model=WorkspaceEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create workspace",
    description="Create a workspace. The caller becomes its owner.",
)
async def create_workspace(
    data: WorkspaceCreate,
    identity: CurrentIdentity,
    service: WorkspaceSvc,
) -> WorkspaceEnvelope:
    """Create a workspace."""
    workspace = await service.create_workspace(identity, data)
    return WorkspaceEnvelope(
        workspace=_workspace_response(workspace, WorkspaceRole.OWNER)
    )


@router.get(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceEnvelope,
    summary="Get workspace",
)
async def get_workspace(access: MemberAccess) -> WorkspaceEnvelope:
    """Get a workspace the caller belongs to."""
    return WorkspaceEnvelope(
        workspace=_workspace_response(access.workspace, access.role)
    )


@router.patch(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceEnvelope,
    summary="Update workspace",
    description="Rename a workspace or change its logo. Owner only.",
)
async def update_workspace(
    data: WorkspaceUpdate,
    access: OwnerAccess,
    service: WorkspaceSvc,
) -> WorkspaceEnvelope:
    """Update a workspace."""
    workspace = await service.update_workspace(access, data)
    return WorkspaceEnvelope(workspace=_workspace_response(workspace, access.role))


@router.delete(
    "/workspaces/{workspace_id}",
    response_model=MessageResponse,
    summary="Delete workspace",
    description=(
        "Delete a workspace with its members, invitations and subscription. "
        "Owner only."
    ),
)
async def delete_workspace(
    access: OwnerAccess,
    service: WorkspaceSvc,
) -> MessageResponse:
    """Delete a workspace."""
    await service.delete_workspace(access)
    return MessageResponse(message="Workspace deleted successfully")


# ============================================================
# Members
# ============================================================


@router.get(
    "/workspaces/{workspace_id}/members",
    response_model=MemberListResponse,
    summary="List members",
)
async def list_members(
    access: MemberAccess,
    service: MemberSvc,
) -> MemberListResponse:
    """List a workspace's members."""
    rows = await service.list_members(access)
    return MemberListResponse(
        members=[_member_response(member, role) for member, role in rows]
    )


@router.patch(
    "/workspaces/{workspace_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Change member role",
    description="Set a member's role to member or admin. The owner cannot be targeted.",
)
async def update_member_role(
    user_id: UUID,
    data: MemberRoleUpdate,
    access: AdminAccess,
    service: MemberSvc,
) -> MessageResponse:
    """Change a member's role."""
    await service.update_member_role(access, user_id, data.role)
    return MessageResponse(message="Member role updated successfully")


@router.delete(
    "/workspaces/{workspace_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove member",
    description="Remove a member from the workspace. The owner cannot be removed.",
)
async def remove_member(
    user_id: UUID,
    access: AdminAccess,
    service: MemberSvc,
) -> MessageResponse:
    """Remove a member."""
    await service.remove_member(access, user_id)
    return MessageResponse(message="Member removed successfully")


# ============================================================
# Invitations
# ============================================================


@router.post(
    "/workspaces/{workspace_id}/invite",
    response_model=InvitationCreatedResponse,
    summary="Invite member",
    description="Invite an email address. The token is returned only in this response.",
)
async def invite_member(
    data: InvitationCreate,
    access: AdminAccess,
    service: InvitationSvc,
) -> InvitationCreatedResponse:
    """Create or replace an invitation."""
    invitation, token = await service.create_invitation(access, data)
    return InvitationCreatedResponse(
        invitation=_invitation_response(invitation),
        token=token,
    )


@router.get(
    "/workspaces/{workspace_id}/invitations",
    response_model=InvitationListResponse,
    summary="List invitations",
)
async def list_invitations(
    access: AdminAccess,
    service: InvitationSvc,
) -> InvitationListResponse:
    """List pending invitations."""
    rows = await service.list_invitations(access)
    return InvitationListResponse(
        invitations=[
            _invitation_response(invitation, inviter) for invitation, inviter in rows
        ]
    )


@router.delete(
    "/workspaces/{workspace_id}/invitations/{invitation_id}",
    response_model=MessageResponse,
    summary="Cancel invitation",
)
async def cancel_invitation(
    invitation_id: UUID,
    access: AdminAccess,
    service: InvitationSvc,
) -> MessageResponse:
    """Cancel an invitation."""
    await service.cancel_invitation(access, invitation_id)
    return MessageResponse(message="Invitation cancelled successfully")


@router.post(
    "/invitations/accept",
    response_model=InvitationAcceptedResponse,
    summary="Accept invitation",
    description="Join a workspace with an invitation token sent to the caller's email.",
)
async def accept_invitation(
    data: InvitationAccept,
    identity: CurrentIdentity,
    service: InvitationSvc,
) -> InvitationAcceptedResponse:
    """Accept an invitation."""
    workspace, role = await service.accept_invitation(identity, data.token)
    return InvitationAcceptedResponse(workspace=_workspace_response(workspace, role))
