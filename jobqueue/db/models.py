"""
SQLAlchemy database models.
Defines the jobs table.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from jobqueue.constants import MAX_MAX_RETRIES, MIN_MAX_RETRIES, JobStatus
from jobqueue.types.job import JobRecord


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Job(Base):
    """
    Job model representing a unit of work in the queue.

    This is the authoritative source of truth for job state.
    All job lifecycle transitions are managed through this table.

    Key constraints:
    - id is the primary key and is never reused
    - worker_id is NULL exactly while the job is pending
    - last_error is only set on failed jobs
    - max_retries stays within 0..64
    """

    __tablename__ = "jobs"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Opaque payload, never parsed
    payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(
            JobStatus,
            name="job_status",
            create_constraint=True,
            native_enum=False,
            length=16,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=JobStatus.PENDING,
    )

    # Claim ownership
    worker_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Retry tracking
    retry_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    max_retries: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=3,
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Table constraints and indexes
    __table_args__ = (
        CheckConstraint(
            f"max_retries >= {MIN_MAX_RETRIES} AND max_retries <= {MAX_MAX_RETRIES}",
            name="ck_jobs_max_retries_range",
        ),
        CheckConstraint("retry_count >= 0", name="ck_jobs_retry_count_positive"),
        CheckConstraint(
            "(status = 'pending' AND worker_id IS NULL)"
            " OR (status <> 'pending' AND worker_id IS NOT NULL)",
            name="ck_jobs_worker_assigned",
        ),
        CheckConstraint(
            "last_error IS NULL OR status = 'failure'",
            name="ck_jobs_last_error_on_failure",
        ),
        # Index for claim candidate selection
        Index("ix_jobs_claim_order", "status", "created_at", "id"),
    )

    def to_record(self) -> JobRecord:
        """Convert this row to an immutable JobRecord."""
        return JobRecord(
            id=self.id,
            name=self.name,
            payload=self.payload,
            status=JobStatus(self.status),
            retry_count=self.retry_count,
            max_retries=self.max_retries,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
            worker_id=self.worker_id,
            last_error=self.last_error,
        )

    def __repr__(self) -> str:
        return (
            f"Job(id={self.id}, name={self.name}, status={self.status}, "
            f"worker={self.worker_id})"
        )
