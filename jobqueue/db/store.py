"""
JobStore protocol - the persistence contract the lifecycle manager uses.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from jobqueue.constants import JobStatus
from jobqueue.types.job import JobRecord


@runtime_checkable
class JobStore(Protocol):
    """
    Protocol for job persistence operations.

    Implementations own every status transition and must make
    try_claim_oldest_pending and transition_to_terminal atomic: the
    eligibility check and the write happen in one step, never as a
    read followed by a separate update.
    """

    async def insert(self, job: JobRecord) -> None:
        """
        Persist a new job.

        Raises:
            ConflictError: If a job with the same id exists.
            StoreError: On backend failure.
        """
        ...

    async def get(self, job_id: str) -> JobRecord:
        """
        Get a job by id.

        Raises:
            NotFoundError: If no job has this id.
            StoreError: On backend failure.
        """
        ...

    async def list_all(self) -> Sequence[JobRecord]:
        """Return every job."""
        ...

    async def try_claim_oldest_pending(self, worker_id: str) -> JobRecord | None:
        """
        Atomically claim the oldest eligible job for a worker.

        Eligible means pending with no worker assigned. Candidates are
        ordered by created_at, then id.

        Returns:
            The claimed job, now running, or None if nothing is eligible.

        Raises:
            StoreError: On backend failure or unresolved contention.
        """
        ...

    async def transition_to_terminal(
        self,
        job_id: str,
        from_status: JobStatus,
        new_status: JobStatus,
        error: str | None = None,
    ) -> JobRecord:
        """
        Move a job to a terminal status if it is still in from_status.

        Raises:
            InvalidStateError: If from_status -> new_status is not allowed.
            NotFoundError: If no job has this id.
            PreconditionFailedError: If the job is no longer in from_status.
            StoreError: On backend failure.
        """
        ...
