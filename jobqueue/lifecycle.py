"""
Job lifecycle manager.

Implements submit, list, get, claim and terminal reporting on top of a
JobStore. The store does the atomic work; this layer validates input,
enforces the "job is not running" pre-check and records observability.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import uuid4

from jobqueue.config import get_settings
from jobqueue.constants import (
    MAX_MAX_RETRIES,
    MIN_MAX_RETRIES,
    SPAN_CLAIM_JOB,
    SPAN_REPORT_JOB,
    SPAN_SUBMIT_JOB,
    JobStatus,
)
from jobqueue.db.store import JobStore
from jobqueue.errors import InvalidArgumentError, InvalidStateError
from jobqueue.observability.metrics import get_metrics
from jobqueue.observability.tracing import get_tracer
from jobqueue.types.job import JobRecord

logger = logging.getLogger(__name__)


class JobLifecycleManager:
    """
    Claim / complete / fail protocol over a job store.

    The store is injected so the same manager runs against the SQL
    repository in production and the in-memory store in tests.
    """

    def __init__(self, store: JobStore, default_max_retries: int | None = None):
        """
        Initialize the manager.

        Args:
            store: Job store that owns persistence and atomic transitions.
            default_max_retries: Used when submit() gets no max_retries.
        """
        self._store = store
        self._default_max_retries = (
            default_max_retries
            if default_max_retries is not None
            else get_settings().default_max_retries
        )
        self._metrics = get_metrics()
        self._tracer = get_tracer()

    @property
    def store(self) -> JobStore:
        return self._store

    async def submit(
        self,
        name: str,
        payload: str,
        max_retries: int | None = None,
    ) -> JobRecord:
        """
        Submit a new job.

        Args:
            name: Display label; surrounding whitespace is trimmed.
            payload: Opaque payload; surrounding whitespace is trimmed.
            max_retries: 0-64, defaults to the configured value (3).

        Returns:
            The stored job, pending and unassigned.

        Raises:
            InvalidArgumentError: If the name is empty or max_retries is
                out of range.
        """
        name = name.strip()
        payload = payload.strip()
        if max_retries is None:
            max_retries = self._default_max_retries

        if not name:
            raise InvalidArgumentError("name cannot be empty.")
        if max_retries < MIN_MAX_RETRIES:
            raise InvalidArgumentError(
                f"max_retries must be greater than or equal to {MIN_MAX_RETRIES}."
            )
        if max_retries > MAX_MAX_RETRIES:
            raise InvalidArgumentError(
                f"max_retries must be less than or equal to {MAX_MAX_RETRIES}."
            )

        now = datetime.now(timezone.utc)
        job = JobRecord(
            id=str(uuid4()),
            name=name,
            payload=payload,
            status=JobStatus.PENDING,
            retry_count=0,
            max_retries=max_retries,
            created_at=now,
            updated_at=now,
        )

        with self._tracer.start_as_current_span(SPAN_SUBMIT_JOB) as span:
            span.set_attribute("job_id", job.id)
            await self._store.insert(job)
            stored = await self._store.get(job.id)

        self._metrics.record_job_submitted()
        logger.info(
            f"Created {stored.name} job",
            extra={"job_id": stored.id, "max_retries": stored.max_retries},
        )
        return stored

    async def list_jobs(self) -> Sequence[JobRecord]:
        """Return a snapshot of every job."""
        return await self._store.list_all()

    async def get_job(self, job_id: str) -> JobRecord:
        """
        Get a single job.

        Raises:
            NotFoundError: If the job does not exist.
        """
        return await self._store.get(job_id.strip())

    async def claim(self, worker_id: str) -> JobRecord | None:
        """
        Claim the oldest pending job for a worker.

        Args:
            worker_id: The claiming worker; surrounding whitespace is trimmed.

        Returns:
            The claimed job, now running, or None if no job is available.

        Raises:
            InvalidArgumentError: If worker_id is empty.
            StoreError: If the store fails or contention is not resolved.
        """
        worker_id = worker_id.strip()
        if not worker_id:
            raise InvalidArgumentError("worker_id cannot be empty.")

        with self._tracer.start_as_current_span(SPAN_CLAIM_JOB) as span:
            span.set_attribute("worker_id", worker_id)
            job = await self._store.try_claim_oldest_pending(worker_id)
            if job is not None:
                span.set_attribute("job_id", job.id)

        if job is None:
            self._metrics.record_claim_empty()
            logger.info("There are no available jobs to claim")
            return None

        self._metrics.record_job_claimed(worker_id)
        logger.info(
            "Claimed job",
            extra={"job_id": job.id, "worker_id": worker_id},
        )
        return job

    async def report_success(self, job_id: str) -> JobRecord:
        """
        Mark a running job as successful.

        Raises:
            NotFoundError: If the job does not exist.
            InvalidStateError: If the job is not running.
            PreconditionFailedError: If another report finalized it first.
        """
        return await self._report(job_id, JobStatus.SUCCESS)

    async def report_failure(self, job_id: str, error: str) -> JobRecord:
        """
        Mark a running job as failed and record the error.

        The error is trimmed; an empty message is accepted. No retry is
        scheduled.

        Raises:
            NotFoundError: If the job does not exist.
            InvalidStateError: If the job is not running.
            PreconditionFailedError: If another report finalized it first.
        """
        return await self._report(job_id, JobStatus.FAILURE, error.strip())

    async def _report(
        self,
        job_id: str,
        new_status: JobStatus,
        error: str | None = None,
    ) -> JobRecord:
        job_id = job_id.strip()

        with self._tracer.start_as_current_span(SPAN_REPORT_JOB) as span:
            span.set_attribute("job_id", job_id)
            span.set_attribute("status", new_status.value)

            existing = await self._store.get(job_id)
            if existing.status != JobStatus.RUNNING:
                raise InvalidStateError("Job is not running.", job_id=job_id)

            # The store re-checks RUNNING inside the write itself
            job = await self._store.transition_to_terminal(
                job_id,
                from_status=JobStatus.RUNNING,
                new_status=new_status,
                error=error,
            )

        self._metrics.record_job_completed(new_status.value)
        if new_status == JobStatus.FAILURE:
            logger.info(
                "Updated job to failure",
                extra={"job_id": job.id, "error": job.last_error},
            )
        else:
            logger.info("Updated job to success", extra={"job_id": job.id})
        return job
