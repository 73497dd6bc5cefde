"""Background job processing with ARQ.

Runs scheduled maintenance against the database, such as purging
expired invitations. Start the worker with:

    arq nexus.core.jobs.worker.WorkerSettings
"""
