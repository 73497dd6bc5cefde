"""Pydantic schemas for workspace operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from nexus.core.constants import MAX_NAME_LENGTH, MAX_URL_LENGTH


# ============================================================
# Workspace Schemas
# ============================================================


class WorkspaceCreate(BaseModel):
    """Schema for creating a workspace."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class WorkspaceUpdate(BaseModel):
    """Schema for updating a workspace. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    logo_url: str | None = Field(None, max_length=MAX_URL_LENGTH)


class WorkspaceResponse(BaseModel):
    """Schema for workspace response data.

    ``role`` is the caller's effective role in the workspace.
    """

    id: UUID
    name: str
    slug: str
    logo_url: str | None = None
    owner_id: UUID
    role: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WorkspaceEnvelope(BaseModel):
    workspace: WorkspaceResponse


class WorkspaceListResponse(BaseModel):
    workspaces: list[WorkspaceResponse]


# ============================================================
# Member Schemas
# ============================================================


class MemberRoleUpdate(BaseModel):
    """Schema for changing a member's role.

    Checked against the grantable roles by the service so that an
    unknown value reads as ``Invalid role``.
    """

    role: str


class MemberResponse(BaseModel):
    """Schema for member response data."""

    id: UUID
    user_id: UUID
    email: str
    full_name: str | None = None
    role: str
    joined_at: datetime


class MemberListResponse(BaseModel):
    members: list[MemberResponse]


# ============================================================
# Invitation Schemas
# ============================================================


class InvitationCreate(BaseModel):
    """Schema for inviting someone to a workspace."""

    email: EmailStr
    role: str = "member"


class InviterResponse(BaseModel):
    """The member who sent an invitation."""

    id: UUID
    email: str | None = None
    full_name: str | None = None


class InvitationResponse(BaseModel):
    """Schema for invitation response data. The token is never included."""

    id: UUID
    email: str
    role: str
    expires_at: datetime
    created_at: datetime
    created_by: InviterResponse


class InvitationCreatedResponse(BaseModel):
    """Returned once, on creation; the only time the raw token is exposed."""

    invitation: InvitationResponse
    token: str
    message: str = "Invitation sent successfully"


class InvitationListResponse(BaseModel):
    invitations: list[InvitationResponse]


class InvitationAccept(BaseModel):
    """Schema for accepting an invitation."""

    token: str = Field(..., min_length=1)


class InvitationAcceptedResponse(BaseModel):
    workspace: WorkspaceResponse
    message: str = "Invitation accepted"


# ============================================================
# Common
# ============================================================


class MessageResponse(BaseModel):
    message: str
