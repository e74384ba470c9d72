"""
Error taxonomy for the job queue.

Every failure raised by the store or the lifecycle manager derives from
JobQueueError and carries:
- a stable machine-readable code
- the HTTP status the API layer answers with
- whether retrying the same call may succeed
"""

from typing import Any


class JobQueueError(Exception):
    """
    Base exception for all job queue errors.

    Attributes:
        code: Stable error code for programmatic handling.
        http_status: HTTP status used by the API layer.
        retryable: Whether the operation can be retried as-is.
        message: Human-readable error message.
        job_id: Job the error refers to, when there is one.
    """

    code: str = "internal_error"
    http_status: int = 500
    retryable: bool = False

    def __init__(self, message: str, *, job_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logging and error responses."""
        return {
            "error": self.code,
            "detail": self.message,
        }


class InvalidArgumentError(JobQueueError):
    """Caller input failed validation. Never reaches the store."""

    code = "invalid_argument"
    http_status = 400


class NotFoundError(JobQueueError):
    """The referenced job does not exist."""

    code = "not_found"
    http_status = 404

    def __init__(self, job_id: str, message: str = "Job does not exist."):
        super().__init__(message, job_id=job_id)


class InvalidStateError(JobQueueError):
    """The operation is not legal for the job's current status."""

    code = "invalid_state"
    http_status = 400


class PreconditionFailedError(InvalidStateError):
    """
    A conditional write found the job in a different status than expected.

    Raised when another writer finalized the job first. Callers handle it
    exactly like InvalidStateError.
    """

    code = "precondition_failed"


class ConflictError(JobQueueError):
    """A job with the same id already exists."""

    code = "conflict"
    http_status = 409


class StoreError(JobQueueError):
    """Transient failure of the backing store. No job state was changed."""

    code = "store_error"
    http_status = 500
    retryable = True
