"""Workspace database models."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from nexus.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_ROLE_LENGTH,
    MAX_SLUG_LENGTH,
    MAX_URL_LENGTH,
    SHA256_HEX_LENGTH,
)
from nexus.core.database.base import Base, TimestampMixin, UUIDMixin, WorkspaceMixin


class Workspace(Base, UUIDMixin, TimestampMixin):
    """A tenant: the unit of data isolation and billing.

    Ownership lives on the workspace itself and is never a stored
    membership role.

    Attributes:
        name: Display name
        slug: URL-safe unique identifier
        logo_url: Optional logo image URL
        owner_id: Identity of the single owner
    """

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    logo_url: Mapped[str | None] = mapped_column(
        String(MAX_URL_LENGTH),
        nullable=True,
    )
    owner_id: Mapped[UUID] = mapped_column(
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, slug={self.slug}, owner_id={self.owner_id})>"


class WorkspaceMember(Base, UUIDMixin, TimestampMixin, WorkspaceMixin):
    """Membership of an identity in a workspace.

    The email and name are a snapshot taken from the identity's token
    when the membership was created.

    Attributes:
        user_id: The member's identity
        email: Member email at join time
        full_name: Member display name at join time
        role: Stored role, ``member`` or ``admin``
    """

    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_members_user"),
        CheckConstraint(
            "role IN ('member', 'admin')", name="ck_workspace_members_role"
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
    )
    full_name: Mapped[str | None] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_LENGTH),
        nullable=False,
        default="member",
    )

    def __repr__(self) -> str:
        return (
            f"<WorkspaceMember(workspace_id={self.workspace_id}, "
            f"user_id={self.user_id}, role={self.role})>"
        )


class WorkspaceInvitation(Base, UUIDMixin, TimestampMixin, WorkspaceMixin):
    """Pending, single-use offer to join a workspace.

    Attributes:
        email: Invitee email, stored lowercase
        role: Role granted on acceptance
        token_hash: SHA-256 hash of the invitation token
        expires_at: When the invitation stops being acceptable
        created_by: Identity of the inviting admin or owner
    """

    __tablename__ = "workspace_invitations"
    __table_args__ = (
        UniqueConstraint(
            "workspace_id", "email", name="uq_workspace_invitations_email"
        ),
        CheckConstraint(
            "role IN ('member', 'admin')", name="ck_workspace_invitations_role"
        ),
    )

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_LENGTH),
        nullable=False,
        default="member",
    )
    token_hash: Mapped[str] = mapped_column(
        String(SHA256_HEX_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_by: Mapped[UUID] = mapped_column(
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<WorkspaceInvitation(id={self.id}, workspace_id={self.workspace_id}, "
            f"email={self.email})>"
        )
