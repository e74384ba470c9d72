"""
Job management routes.

Handlers only translate HTTP to lifecycle calls; validation and error
classification happen in the core and JobQueueError is mapped to a
status code by the application's exception handler.
"""

from fastapi import APIRouter, status

from jobqueue.api.dependencies import Lifecycle
from jobqueue.constants import JOBS_PREFIX
from jobqueue.types.api import (
    ClaimJobRequest,
    ClaimJobResponse,
    CreateJobRequest,
    ErrorResponse,
    JobEnvelope,
    JobListResponse,
    JobResponse,
    ReportFailureRequest,
)
from jobqueue.types.job import JobRecord

router = APIRouter(prefix=JOBS_PREFIX, tags=["Jobs"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or job state"},
    404: {"model": ErrorResponse, "description": "Job not found"},
    500: {"model": ErrorResponse, "description": "Store failure"},
}


def _job_to_response(job: JobRecord) -> JobResponse:
    """Convert a JobRecord to a JobResponse."""
    return JobResponse.model_validate(job)


@router.post(
    "",
    response_model=JobEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Submit a job",
    description="Submit a new pending job to the queue.",
)
async def create_job(request: CreateJobRequest, lifecycle: Lifecycle) -> JobEnvelope:
    """
    Create a new job.

    Args:
        request: Job creation request.
        lifecycle: Lifecycle manager.

    Returns:
        The stored job.
    """
    job = await lifecycle.submit(
        name=request.name,
        payload=request.payload,
        max_retries=request.max_retries,
    )
    return JobEnvelope(job=_job_to_response(job))


@router.get(
    "",
    response_model=JobListResponse,
    responses=ERROR_RESPONSES,
    summary="List jobs",
    description="List every job in the queue.",
)
async def list_jobs(lifecycle: Lifecycle) -> JobListResponse:
    jobs = await lifecycle.list_jobs()
    return JobListResponse(jobs=[_job_to_response(job) for job in jobs])


@router.post(
    "/claim",
    response_model=ClaimJobResponse,
    responses=ERROR_RESPONSES,
    summary="Claim a job",
    description="Atomically claim the oldest pending job for a worker.",
)
async def claim_job(request: ClaimJobRequest, lifecycle: Lifecycle) -> ClaimJobResponse:
    """
    Claim the oldest pending job.

    An empty queue is not an error: the response carries job=null.

    Args:
        request: Claim request with the worker id.
        lifecycle: Lifecycle manager.

    Returns:
        The claimed job or null.
    """
    job = await lifecycle.claim(request.worker_id)
    return ClaimJobResponse(job=_job_to_response(job) if job is not None else None)


@router.get(
    "/{job_id}",
    response_model=JobEnvelope,
    responses=ERROR_RESPONSES,
    summary="Get job details",
)
async def get_job(job_id: str, lifecycle: Lifecycle) -> JobEnvelope:
    job = await lifecycle.get_job(job_id)
    return JobEnvelope(job=_job_to_response(job))


@router.post(
    "/{job_id}/success",
    response_model=JobEnvelope,
    responses=ERROR_RESPONSES,
    summary="Report a successful run",
    description="Move a running job to success.",
)
async def report_success(job_id: str, lifecycle: Lifecycle) -> JobEnvelope:
    job = await lifecycle.report_success(job_id)
    return JobEnvelope(job=_job_to_response(job))


@router.post(
    "/{job_id}/failure",
    response_model=JobEnvelope,
    responses=ERROR_RESPONSES,
    summary="Report a failed run",
    description="Move a running job to failure and record the error.",
)
async def report_failure(
    job_id: str,
    request: ReportFailureRequest,
    lifecycle: Lifecycle,
) -> JobEnvelope:
    """
    Report a failed run.

    Args:
        job_id: The job id.
        request: Failure request carrying the error message.
        lifecycle: Lifecycle manager.

    Returns:
        The failed job.
    """
    job = await lifecycle.report_failure(job_id, request.error)
    return JobEnvelope(job=_job_to_response(job))
