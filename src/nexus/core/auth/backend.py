"""Authentication backend for token verification.

This module provides core authentication utilities including:
- JWT verification for tokens issued by the external auth service
- JWT creation for development and seed tooling
- Token hashing for storage
"""

import hashlib
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from nexus.config import settings
from nexus.core.auth.schemas import Identity


# ============================================================
# JWT Token Utilities
# ============================================================


def create_access_token(
    user_id: UUID,
    email: str,
    full_name: str | None = None,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a JWT shaped like the ones the auth service issues.

    Args:
        user_id: The user's UUID
        email: The user's email
        full_name: Optional display name stored under ``user_metadata``
        expires_delta: Optional custom expiration time
        additional_claims: Optional extra claims to include

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(UTC)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
        "iat": now,
        "user_metadata": {"full_name": full_name} if full_name else {},
    }
    if settings.auth_jwt_audience:
        to_encode["aud"] = settings.auth_jwt_audience

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.auth_jwt_secret,
        algorithm=settings.auth_jwt_algorithm,
    )


def hash_token(token: str) -> str:
    """Hash a token for secure storage.

    Uses SHA-256 to hash tokens before storing in the database.
    This prevents token theft if the database is compromised.

    Args:
        token: The token to hash

    Returns:
        SHA-256 hash of the token
    """
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str) -> Identity | None:
    """Decode and validate a JWT token.

    Args:
        token: The JWT token to decode

    Returns:
        Identity if valid, None if invalid, expired or missing claims
    """
    audience = settings.auth_jwt_audience
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=audience,
            options={"verify_aud": audience is not None},
        )

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None

        metadata = payload.get("user_metadata") or {}
        full_name = metadata.get("full_name") if isinstance(metadata, dict) else None

        return Identity(id=UUID(user_id), email=email, full_name=full_name)

    except (JWTError, ValueError):
        return None
