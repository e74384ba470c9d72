"""
Job repository for database operations.
Implements the JobStore protocol on top of async SQLAlchemy.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import exists, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobqueue.config import get_settings
from jobqueue.constants import JobStatus
from jobqueue.db.models import Job
from jobqueue.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    PreconditionFailedError,
    StoreError,
)
from jobqueue.observability.metrics import get_metrics
from jobqueue.types.job import JobRecord

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobRepository:
    """
    SQL implementation of the job store.

    Every public method is one unit of work: it opens a session from the
    injected factory, runs its statements in a single transaction and
    commits before returning.

    Implements atomic operations for:
    - Job insertion with duplicate-id detection (INSERT ... ON CONFLICT)
    - Claiming with a single conditional UPDATE (FOR UPDATE SKIP LOCKED
      on PostgreSQL)
    - Terminal transitions guarded by the expected current status
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        claim_max_attempts: int | None = None,
        claim_retry_backoff_seconds: float | None = None,
    ):
        """
        Initialize the repository with a session factory.

        Args:
            session_factory: Factory for async database sessions.
            claim_max_attempts: Bound on claim retries under contention.
            claim_retry_backoff_seconds: Base delay between claim retries.
        """
        settings = get_settings()
        self._session_factory = session_factory
        self._claim_max_attempts = max(
            1, claim_max_attempts or settings.claim_max_attempts
        )
        self._claim_backoff = (
            claim_retry_backoff_seconds
            if claim_retry_backoff_seconds is not None
            else settings.claim_retry_backoff_seconds
        )

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @staticmethod
    def _dialect(session: AsyncSession) -> str:
        return session.get_bind().dialect.name

    def _insert_ignoring_duplicates(self, session: AsyncSession, values: dict[str, Any]):
        """Build an INSERT that skips rows whose id already exists."""
        dialect = self._dialect(session)
        if dialect == "postgresql":
            stmt = postgresql.insert(Job).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(Job).values(**values)
        else:
            return insert(Job).values(**values).returning(Job.id)
        return stmt.on_conflict_do_nothing(index_elements=[Job.id]).returning(Job.id)

    async def insert(self, job: JobRecord) -> None:
        """
        Insert a new job row.

        Args:
            job: The job to persist.

        Raises:
            ConflictError: If a job with the same id exists.
            InvalidArgumentError: If the row violates a table constraint.
            StoreError: On database failure.
        """
        values = {
            "id": job.id,
            "name": job.name,
            "payload": job.payload,
            "status": job.status,
            "worker_id": job.worker_id,
            "retry_count": job.retry_count,
            "max_retries": job.max_retries,
            "last_error": job.last_error,
            "created_at": job.created_at,
            "updated_at": job.updated_at,
        }

        try:
            async with self._transaction() as session:
                result = await session.execute(
                    self._insert_ignoring_duplicates(session, values)
                )
                inserted_id = result.scalar_one_or_none()
        except IntegrityError as e:
            if self._is_duplicate_key(e):
                raise ConflictError(
                    "Job already exists.", job_id=job.id
                ) from e
            raise InvalidArgumentError(
                "Job violates table constraints.", job_id=job.id
            ) from e
        except SQLAlchemyError as e:
            logger.error("Failed to create job", extra={"job_id": job.id, "error": str(e)})
            raise StoreError("Failed to create job.", job_id=job.id) from e

        if inserted_id is None:
            raise ConflictError("Job already exists.", job_id=job.id)

    @staticmethod
    def _is_duplicate_key(error: IntegrityError) -> bool:
        """Only dialects without ON CONFLICT surface duplicate ids as errors."""
        message = str(error.orig).lower()
        return "unique" in message or "duplicate" in message or "primary" in message

    async def get(self, job_id: str) -> JobRecord:
        """
        Get a job by ID.

        Args:
            job_id: The job id.

        Returns:
            The job snapshot.

        Raises:
            NotFoundError: If the job does not exist.
            StoreError: On database failure.
        """
        try:
            async with self._transaction() as session:
                job = await session.scalar(select(Job).where(Job.id == job_id))
                record = job.to_record() if job is not None else None
        except SQLAlchemyError as e:
            logger.error("Failed to fetch job", extra={"job_id": job_id, "error": str(e)})
            raise StoreError("Failed to fetch job.", job_id=job_id) from e

        if record is None:
            raise NotFoundError(job_id)
        return record

    async def list_all(self) -> Sequence[JobRecord]:
        """
        List every job, oldest first.

        Returns:
            Snapshots of all jobs.
        """
        stmt = select(Job).order_by(Job.created_at.asc(), Job.id.asc())
        try:
            async with self._transaction() as session:
                result = await session.execute(stmt)
                return [job.to_record() for job in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to fetch jobs", extra={"error": str(e)})
            raise StoreError("Failed to fetch jobs.") from e

    async def try_claim_oldest_pending(self, worker_id: str) -> JobRecord | None:
        """
        Claim the oldest eligible job with a single conditional UPDATE.

        This is the critical path for job distribution. Selection and
        assignment happen in one statement, so two workers can never both
        claim the same row. A claim that updates nothing while eligible
        jobs remain (lost race) or hits a transient lock error is retried
        a bounded number of times.

        Args:
            worker_id: The claiming worker.

        Returns:
            The claimed job, or None when no job is available.

        Raises:
            StoreError: On database failure or unresolved contention.
        """
        for attempt in range(1, self._claim_max_attempts + 1):
            try:
                async with self._transaction() as session:
                    claimed = await self._claim_once(session, worker_id)
                    if claimed is not None:
                        return claimed
                    if not await self._has_eligible(session):
                        return None
            except OperationalError as e:
                get_metrics().record_claim_conflict()
                if attempt == self._claim_max_attempts:
                    logger.error(
                        "Claim failed after retries",
                        extra={"worker_id": worker_id, "attempts": attempt, "error": str(e)},
                    )
                    raise StoreError("Failed to claim job.") from e
                logger.warning(
                    "Transient error while claiming, retrying",
                    extra={"worker_id": worker_id, "attempt": attempt, "error": str(e)},
                )
            except SQLAlchemyError as e:
                logger.error("Failed to claim job", extra={"worker_id": worker_id, "error": str(e)})
                raise StoreError("Failed to claim job.") from e
            else:
                get_metrics().record_claim_conflict()
                if attempt == self._claim_max_attempts:
                    logger.error(
                        "Claim contention unresolved after retries",
                        extra={"worker_id": worker_id, "attempts": attempt},
                    )
                    raise StoreError("Failed to claim job.")
                logger.warning(
                    "Lost claim race, retrying",
                    extra={"worker_id": worker_id, "attempt": attempt},
                )

            await asyncio.sleep(self._claim_backoff * attempt)

        raise StoreError("Failed to claim job.")

    async def _claim_once(self, session: AsyncSession, worker_id: str) -> JobRecord | None:
        candidate = (
            select(Job.id)
            .where(
                Job.status == JobStatus.PENDING,
                Job.worker_id.is_(None),
            )
            .order_by(Job.created_at.asc(), Job.id.asc())
            .limit(1)
        )
        if self._dialect(session) == "postgresql":
            # Concurrent claimers skip rows another transaction is claiming
            candidate = candidate.with_for_update(skip_locked=True)

        stmt = (
            update(Job)
            .where(
                Job.id == candidate.scalar_subquery(),
                Job.status == JobStatus.PENDING,
                Job.worker_id.is_(None),
            )
            .values(
                status=JobStatus.RUNNING,
                worker_id=worker_id,
                updated_at=_utcnow(),
            )
            .returning(Job)
            .execution_options(synchronize_session=False)
        )

        result = await session.execute(stmt)
        job = result.scalar_one_or_none()
        return job.to_record() if job is not None else None

    async def _has_eligible(self, session: AsyncSession) -> bool:
        stmt = select(
            exists().where(
                Job.status == JobStatus.PENDING,
                Job.worker_id.is_(None),
            )
        )
        return bool(await session.scalar(stmt))

    async def transition_to_terminal(
        self,
        job_id: str,
        from_status: JobStatus,
        new_status: JobStatus,
        error: str | None = None,
    ) -> JobRecord:
        """
        Move a job to a terminal status, guarded by its current status.

        The status check is part of the UPDATE's WHERE clause, so a
        concurrent terminal report for the same job cannot also succeed.

        Args:
            job_id: The job id.
            from_status: Status the job must still be in.
            new_status: Target status.
            error: Error message, stored only for FAILURE.

        Returns:
            The updated job.

        Raises:
            InvalidStateError: If the transition is not allowed.
            NotFoundError: If the job does not exist.
            PreconditionFailedError: If the job left from_status.
            StoreError: On database failure.
        """
        if not from_status.can_transition_to(new_status) or not new_status.is_terminal:
            raise InvalidStateError(
                f"Cannot move job from {from_status} to {new_status}.", job_id=job_id
            )

        stmt = (
            update(Job)
            .where(
                Job.id == job_id,
                Job.status == from_status,
            )
            .values(
                status=new_status,
                last_error=error if new_status == JobStatus.FAILURE else None,
                updated_at=_utcnow(),
            )
            .returning(Job)
            .execution_options(synchronize_session=False)
        )

        try:
            async with self._transaction() as session:
                result = await session.execute(stmt)
                job = result.scalar_one_or_none()
                if job is not None:
                    return job.to_record()

                current = await session.scalar(select(Job.status).where(Job.id == job_id))
        except SQLAlchemyError as e:
            logger.error("Failed to update job", extra={"job_id": job_id, "error": str(e)})
            raise StoreError("Failed to update job.", job_id=job_id) from e

        if current is None:
            raise NotFoundError(job_id)
        raise PreconditionFailedError(
            f"Job is {JobStatus(current)}, expected {from_status}.", job_id=job_id
        )
