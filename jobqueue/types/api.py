"""
API request and response type definitions.

Request models check shape only; trimming and content validation happen
in the lifecycle manager.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from jobqueue.constants import JobStatus


class CreateJobRequest(BaseModel):
    """Request body for submitting a new job."""

    name: str = Field(..., description="Display label for the job")
    payload: str = Field(..., description="Opaque payload passed to the worker")
    max_retries: StrictInt | None = Field(
        default=None, description="Maximum retries, 0-64 (defaults to 3)"
    )


class ClaimJobRequest(BaseModel):
    """Request body for claiming the oldest pending job."""

    worker_id: str = Field(..., description="Identifier of the claiming worker")


class ReportFailureRequest(BaseModel):
    """Request body for reporting a failed run."""

    error: str = Field(..., description="Error message from the worker, may be empty")


class JobResponse(BaseModel):
    """Job snapshot returned by every job endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    payload: str
    status: JobStatus
    retry_count: int
    max_retries: int
    last_error: str | None
    worker_id: str | None


class JobEnvelope(BaseModel):
    """Single-job response body."""

    job: JobResponse


class ClaimJobResponse(BaseModel):
    """Claim response body; job is null when nothing is available."""

    job: JobResponse | None


class JobListResponse(BaseModel):
    """List of all jobs."""

    jobs: list[JobResponse]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None
