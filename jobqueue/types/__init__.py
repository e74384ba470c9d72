"""
Type definitions for the job queue.
Contains input/output type definitions, grouped by module.
"""

from jobqueue.types.api import (
    ClaimJobRequest,
    ClaimJobResponse,
    CreateJobRequest,
    ErrorResponse,
    HealthResponse,
    JobEnvelope,
    JobListResponse,
    JobResponse,
    ReportFailureRequest,
)
from jobqueue.types.job import JobRecord

__all__ = [
    # API types
    "CreateJobRequest",
    "ClaimJobRequest",
    "ReportFailureRequest",
    "JobResponse",
    "JobEnvelope",
    "ClaimJobResponse",
    "JobListResponse",
    "HealthResponse",
    "ErrorResponse",
    # Job types
    "JobRecord",
]
