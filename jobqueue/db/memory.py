"""
In-memory job store.

Process-local implementation of the JobStore protocol for tests and
embedding. Each operation runs under one lock with no awaits inside, so
it is atomic across asyncio tasks and threads alike.
"""

import threading
from collections.abc import Sequence
from datetime import datetime, timezone

from jobqueue.constants import MAX_MAX_RETRIES, MIN_MAX_RETRIES, JobStatus
from jobqueue.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    PreconditionFailedError,
)
from jobqueue.types.job import JobRecord


class InMemoryJobRepository:
    """Dictionary-backed job store."""

    def __init__(self) -> None:
        self._jobs: dict[str, JobRecord] = {}
        self._lock = threading.Lock()

    async def insert(self, job: JobRecord) -> None:
        # Mirror the table constraints of the SQL store
        if not MIN_MAX_RETRIES <= job.max_retries <= MAX_MAX_RETRIES:
            raise InvalidArgumentError("Job violates table constraints.", job_id=job.id)
        if job.retry_count < 0:
            raise InvalidArgumentError("Job violates table constraints.", job_id=job.id)
        if (job.status == JobStatus.PENDING) != (job.worker_id is None):
            raise InvalidArgumentError("Job violates table constraints.", job_id=job.id)
        if job.last_error is not None and job.status != JobStatus.FAILURE:
            raise InvalidArgumentError("Job violates table constraints.", job_id=job.id)

        with self._lock:
            if job.id in self._jobs:
                raise ConflictError("Job already exists.", job_id=job.id)
            self._jobs[job.id] = job

    async def get(self, job_id: str) -> JobRecord:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(job_id)
        return job

    async def list_all(self) -> Sequence[JobRecord]:
        with self._lock:
            return list(self._jobs.values())

    async def try_claim_oldest_pending(self, worker_id: str) -> JobRecord | None:
        with self._lock:
            eligible = [job for job in self._jobs.values() if job.is_claimable]
            if not eligible:
                return None

            candidate = min(eligible, key=lambda job: (job.created_at, job.id))
            claimed = candidate.evolve(
                status=JobStatus.RUNNING,
                worker_id=worker_id,
                updated_at=datetime.now(timezone.utc),
            )
            self._jobs[claimed.id] = claimed
            return claimed

    async def transition_to_terminal(
        self,
        job_id: str,
        from_status: JobStatus,
        new_status: JobStatus,
        error: str | None = None,
    ) -> JobRecord:
        if not from_status.can_transition_to(new_status) or not new_status.is_terminal:
            raise InvalidStateError(
                f"Cannot move job from {from_status} to {new_status}.", job_id=job_id
            )

        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError(job_id)
            if job.status != from_status:
                raise PreconditionFailedError(
                    f"Job is {job.status}, expected {from_status}.", job_id=job_id
                )

            updated = job.evolve(
                status=new_status,
                last_error=error if new_status == JobStatus.FAILURE else None,
                updated_at=datetime.now(timezone.utc),
            )
            self._jobs[job_id] = updated
            return updated
