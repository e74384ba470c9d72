"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobStatus(StrEnum):
    """
    Job lifecycle states.

    State transitions:
    - PENDING -> RUNNING (claimed by a worker)
    - RUNNING -> SUCCESS (worker reported success)
    - RUNNING -> FAILURE (worker reported failure)

    SUCCESS and FAILURE are terminal.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is allowed from this status."""
        return not JOB_TRANSITIONS[self]

    def can_transition_to(self, target: "JobStatus") -> bool:
        """Check if moving from this status to ``target`` is allowed."""
        return target in JOB_TRANSITIONS[self]


# Allowed status transitions; anything not listed here is illegal
JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset({JobStatus.SUCCESS, JobStatus.FAILURE}),
    JobStatus.SUCCESS: frozenset(),
    JobStatus.FAILURE: frozenset(),
}

TERMINAL_STATUSES: frozenset[JobStatus] = frozenset(
    status for status, targets in JOB_TRANSITIONS.items() if not targets
)

# Default values
DEFAULT_MAX_RETRIES = 3
MIN_MAX_RETRIES = 0
MAX_MAX_RETRIES = 64
DEFAULT_CLAIM_MAX_ATTEMPTS = 3

# API constants
JOBS_PREFIX = "/jobs"

# Metrics names
METRIC_JOBS_SUBMITTED = "jobs_submitted_total"
METRIC_JOBS_CLAIMED = "jobs_claimed_total"
METRIC_CLAIMS_EMPTY = "claims_empty_total"
METRIC_CLAIM_CONFLICTS = "claim_conflicts_total"
METRIC_JOBS_COMPLETED = "jobs_completed_total"
METRIC_API_REQUESTS = "api_requests_total"
METRIC_API_LATENCY = "api_request_latency_seconds"

# Trace span names
SPAN_SUBMIT_JOB = "submit_job"
SPAN_CLAIM_JOB = "claim_job"
SPAN_REPORT_JOB = "report_job"
