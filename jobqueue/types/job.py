"""
Job-related type definitions for internal use.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from jobqueue.constants import JobStatus


@dataclass(frozen=True)
class JobRecord:
    """
    Immutable snapshot of a job row.

    This is what crosses the store boundary in both directions, so the
    lifecycle manager never holds a live ORM object or a reference into
    the in-memory store.
    """

    id: str
    name: str
    payload: str
    status: JobStatus
    retry_count: int
    max_retries: int
    created_at: datetime
    updated_at: datetime
    worker_id: str | None = None
    last_error: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Check if the job has reached SUCCESS or FAILURE."""
        return self.status.is_terminal

    @property
    def is_claimable(self) -> bool:
        """Check if the job is pending and unassigned."""
        return self.status == JobStatus.PENDING and self.worker_id is None

    def evolve(self, **changes) -> "JobRecord":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
