"""Middleware for request metrics and per-request error isolation."""
import logging
import time
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from prometheus_client import Counter, Histogram, Gauge

logger = logging.getLogger(__name__)


# HTTP metrics
http_requests_total = Counter(
    'spoanalyzer_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'spoanalyzer_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

http_requests_in_progress = Gauge(
    'spoanalyzer_http_requests_in_progress',
    'HTTP requests currently in progress',
    ['method']
)


def endpoint_label(request: Request) -> str:
    """
    Route template of the matched route, e.g. /api/data/{data_type}.

    Only known after routing; path parameters share one label, and
    requests no route matched share "unmatched".
    """
    route = request.scope.get("route")
    if route is None:
        return "unmatched"
    return getattr(route, "path", "") or "/"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next):
        """
        Process request and track metrics.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler

        Returns:
            Response
        """
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method

        # Track request start
        start_time = time.time()
        http_requests_in_progress.labels(method=method).inc()

        try:
            response = await call_next(request)

            duration = time.time() - start_time
            endpoint = endpoint_label(request)
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            return response

        except Exception as e:
            duration = time.time() - start_time
            endpoint = endpoint_label(request)
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()
            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            raise e

        finally:
            # Always decrement in-progress count
            http_requests_in_progress.labels(method=method).dec()


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Convert an unhandled exception of one request into a 500 response.

    The server keeps accepting requests; only the failing request sees
    the error.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled error in {request.method} {request.url.path}: {e}",
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": f"Internal server error: {e}"},
            )
