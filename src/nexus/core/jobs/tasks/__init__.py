"""Background job tasks."""

from nexus.core.jobs.tasks.cleanup import purge_expired_invitations


__all__ = [
    "purge_expired_invitations",
]
