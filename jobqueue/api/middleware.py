"""
Request middleware: Prometheus request metrics and per-request log context.
"""

import time
from collections.abc import Callable
from uuid import uuid4

from fastapi import Request

from jobqueue.observability.logging import bind_context, clear_context
from jobqueue.observability.metrics import get_metrics

# Probe and scrape endpoints are not counted as API traffic
UNTRACKED_PATHS = frozenset({"/health", "/ready", "/live", "/metrics", "/docs", "/openapi.json"})


def _endpoint_label(request: Request) -> str:
    """Use the route template so job ids don't explode label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def create_metrics_middleware() -> Callable:
    """
    Create request metrics middleware for FastAPI.

    Returns:
        The middleware function.
    """

    async def metrics_middleware(request: Request, call_next: Callable):
        """Time the request, record it, and tag logs with a request id."""
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        clear_context()
        bind_context(
            request_id=request.headers.get("X-Request-ID", uuid4().hex),
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        get_metrics().record_api_request(
            method=request.method,
            endpoint=_endpoint_label(request),
            status=response.status_code,
            duration_seconds=duration,
        )
        return response

    return metrics_middleware
