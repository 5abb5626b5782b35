"""Request logging middleware.

Provides canonical log line per request with trace ID propagation.
"""

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from balancer.app.logging import clear_request_context, set_team, set_trace_id
from balancer.app.metrics import MetricsRecorder
from balancer.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)

# Team routes; the team segment is bound to the log context and replaced
# with a placeholder in metric labels
_TEAM_ROUTE = re.compile(r"^/balancer/teams/(?P<team>[^/]+)/(?P<action>join|wait-till-ready)$")

# Whitelist of known endpoints for metrics (cardinality control)
_KNOWN_ENDPOINTS = frozenset({
    "/balancer/teams/:team/join",
    "/balancer/teams/:team/wait-till-ready",
    "/balancer/teams/logout",
})

_SKIP_PATHS = ("/balancer/", "/balancer/metrics")


def normalize_path(path: str) -> str:
    """Normalize path and apply whitelist for cardinality control."""
    if match := _TEAM_ROUTE.match(path):
        path = f"/balancer/teams/:team/{match['action']}"
    return path if path in _KNOWN_ENDPOINTS else "other"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging with trace ID propagation.

    Features:
    - Sets trace_id from X-Trace-ID header or generates new one
    - Binds the team of /{team}/join and /{team}/wait-till-ready to the log context
    - Logs canonical request log line (one per request)
    - Records request count/duration on the app's MetricsRecorder
    - Adds X-Trace-ID header to response

    Usage:
        app.add_middleware(LoggingMiddleware)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = set_trace_id(request.headers.get("x-trace-id"))
        path = request.url.path
        if match := _TEAM_ROUTE.match(path):
            set_team(match["team"])

        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.monotonic() - start) * 1000
            logger.error(
                "Request failed",
                extra={
                    "event": LogEvent.REQUEST_FAILED,
                    "method": request.method,
                    "path": path,
                    "duration_ms": duration_ms,
                },
            )
            clear_request_context()
            raise

        duration_seconds = time.monotonic() - start
        duration_ms = duration_seconds * 1000

        if path not in _SKIP_PATHS:
            metrics: MetricsRecorder | None = getattr(request.app.state, "metrics", None)
            if metrics is not None:
                endpoint = normalize_path(path)
                metrics.http_requests.labels(
                    method=request.method,
                    endpoint=endpoint,
                    status=str(response.status_code),
                ).inc()
                metrics.http_request_duration.labels(
                    method=request.method,
                    endpoint=endpoint,
                ).observe(duration_seconds)

            logger.info(
                "Request completed",
                extra={
                    "event": LogEvent.REQUEST_COMPLETE,
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                },
            )

            # wait-till-ready is slow by nature
            slow_threshold_ms = request.app.state.settings.logging.slow_threshold_ms
            if duration_ms > slow_threshold_ms and not path.endswith("/wait-till-ready"):
                logger.warning(
                    "Slow request detected",
                    extra={
                        "event": LogEvent.REQUEST_SLOW,
                        "method": request.method,
                        "path": path,
                        "status": response.status_code,
                        "duration_ms": duration_ms,
                        "threshold_ms": slow_threshold_ms,
                    },
                )

        clear_request_context()
        response.headers["X-Trace-ID"] = trace_id
        return response
