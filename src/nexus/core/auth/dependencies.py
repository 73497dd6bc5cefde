"""FastAPI dependencies for authentication.

This module provides FastAPI dependency injection functions for:
- Extracting and validating bearer tokens
- Getting the current authenticated identity
"""

from typing import Annotated

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from nexus.core.auth.backend import decode_token
from nexus.core.auth.schemas import Identity
from nexus.core.errors import UnauthorizedError


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity:
    """Resolve the authenticated caller from the Authorization header.

    Args:
        request: The incoming request
        credentials: Bearer token credentials from the request

    Returns:
        The verified identity

    Raises:
        UnauthorizedError: If the token is missing, malformed or rejected
    """
    if not credentials:
        raise UnauthorizedError(error_code="missing_token")

    identity = decode_token(credentials.credentials)
    if not identity:
        raise UnauthorizedError(error_code="invalid_token")

    request.state.user_id = identity.id
    structlog.contextvars.bind_contextvars(user_id=str(identity.id))

    return identity


# Type alias for cleaner dependency injection
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
