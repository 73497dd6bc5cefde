"""Authentication module for verifying externally issued tokens."""

from nexus.core.auth.backend import create_access_token, decode_token, hash_token
from nexus.core.auth.dependencies import CurrentIdentity, get_current_identity
from nexus.core.auth.middleware import RequestIdMiddleware
from nexus.core.auth.schemas import Identity


__all__ = [
    # Dependencies
    "CurrentIdentity",
    # Schemas
    "Identity",
    # Middleware
    "RequestIdMiddleware",
    # Token utilities
    "create_access_token",
    "decode_token",
    "get_current_identity",
    "hash_token",
]
