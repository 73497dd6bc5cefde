"""ARQ worker configuration."""

from typing import Any, ClassVar

import structlog
from arq import cron
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from nexus.config import settings
from nexus.core.jobs.tasks import purge_expired_invitations
from nexus.core.jobs.utils import get_redis_settings


async def startup(ctx: dict[str, Any]) -> None:
    """Create the worker's database engine and session factory.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    engine = create_async_engine(
        settings.async_database_url,
        pool_size=2,
        max_overflow=2,
        pool_pre_ping=True,
        echo=settings.database_echo,
    )

    ctx["db_engine"] = engine
    ctx["db_session_factory"] = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def shutdown(ctx: dict[str, Any]) -> None:
    log = structlog.get_logger()

    engine = ctx.get("db_engine")
    if engine:
        await engine.dispose()

    log.info("worker_shutdown_complete")


class WorkerSettings:
    """ARQ worker settings."""

    functions: ClassVar[list[Any]] = [
        purge_expired_invitations,
    ]

    cron_jobs: ClassVar[list[Any]] = [
        # Daily at 03:15 UTC
        cron(purge_expired_invitations, hour=3, minute=15),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = get_redis_settings()

    max_jobs = 5
    job_timeout = 120
    keep_result = 3600
    max_tries = 3
