"""
FastAPI dependencies for reaching the core.
"""

from typing import Annotated

from fastapi import Depends

from jobqueue.db import JobRepository, JobStore, get_session_factory
from jobqueue.lifecycle import JobLifecycleManager


def get_job_store() -> JobStore:
    """
    Build the SQL job store over the initialized session factory.

    Raises:
        RuntimeError: If the database is not initialized.
    """
    return JobRepository(get_session_factory())


def get_lifecycle(
    store: Annotated[JobStore, Depends(get_job_store)],
) -> JobLifecycleManager:
    """Build the lifecycle manager for a request."""
    return JobLifecycleManager(store)


Lifecycle = Annotated[JobLifecycleManager, Depends(get_lifecycle)]
