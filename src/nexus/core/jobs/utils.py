"""Shared utilities for job infrastructure."""

from arq.connections import RedisSettings

from nexus.config import settings


def get_redis_settings() -> RedisSettings:
    """Get Redis settings for ARQ from app configuration.

    Returns:
        ARQ RedisSettings parsed from ``REDIS_URL``
    """
    return RedisSettings.from_dsn(str(settings.redis_url))
