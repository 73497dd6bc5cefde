"""Authentication schemas for token handling."""

from uuid import UUID

from pydantic import BaseModel


class Identity(BaseModel):
    """The authenticated caller, built from verified token claims.

    Identities are issued by the external auth service and never stored
    locally.

    Attributes:
        id: Stable user identifier (the ``sub`` claim)
        email: The user's email address
        full_name: Display name from ``user_metadata.full_name``, if any
    """

    id: UUID
    email: str
    full_name: str | None = None

    model_config = {"frozen": True}
