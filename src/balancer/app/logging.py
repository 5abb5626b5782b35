"""JSON logging for the balancer.

Every line carries the fields documented in core/logging_schema.py. The
request middleware binds a trace ID and, on team routes, the team name; the
formatter stamps both onto every record emitted while the request runs.
"""

import logging
import sys
import time
from collections import defaultdict, deque
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pythonjsonlogger import jsonlogger

from balancer.app.config import LoggingConfig, get_settings
from balancer.core.logging_schema import LogEvent

# Team names in requests are unvalidated user input
MAX_LOGGED_TEAM_LENGTH = 64

UNKNOWN_EVENT = "unknown"

_KNOWN_EVENTS = frozenset(e.value for e in LogEvent)

trace_id_ctx: ContextVar[str | None] = ContextVar("trace_id", default=None)
team_ctx: ContextVar[str | None] = ContextVar("team", default=None)


def get_trace_id() -> str | None:
    """Get current trace_id from context."""
    return trace_id_ctx.get()


def set_trace_id(trace_id: str | None = None) -> str:
    """Set trace_id in context, generating one if not provided.

    Args:
        trace_id: Optional trace ID to set. If None, generates a new UUID.

    Returns:
        The trace ID that was set.
    """
    tid = trace_id or str(uuid4())
    trace_id_ctx.set(tid)
    return tid


def get_team() -> str | None:
    return team_ctx.get()


def set_team(team: str) -> None:
    """Bind the team the current request acts on."""
    team_ctx.set(team)


def clear_request_context() -> None:
    """Clear trace and team context (call at end of request)."""
    trace_id_ctx.set(None)
    team_ctx.set(None)


class RateLimitFilter(logging.Filter):
    """Caps identical log lines per minute to keep join floods readable.

    Records are grouped by logger and event (falling back to the unformatted
    message), so repeated failures for many different teams share one budget.
    ERROR logs are never suppressed.
    """

    def __init__(self, rate_per_minute: int = 100) -> None:
        super().__init__()
        self.rate_per_minute = rate_per_minute
        self._seen: dict[str, deque[float]] = defaultdict(deque)
        self._suppressing: set[str] = set()

    def _key(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        return f"{record.name}:{event or record.msg}"

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR:
            return True

        key = self._key(record)
        now = time.monotonic()
        seen = self._seen[key]
        while seen and now - seen[0] >= 60:
            seen.popleft()

        if len(seen) >= self.rate_per_minute:
            # One marker line per burst
            if key in self._suppressing:
                return False
            self._suppressing.add(key)
            record.msg = f"[RATE LIMITED] {record.msg} (max {self.rate_per_minute}/min)"
            seen.append(now)
            return True

        if len(seen) < self.rate_per_minute // 2:
            self._suppressing.discard(key)

        seen.append(now)
        return True


class BalancerJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter enforcing the balancer log schema.

    - event: normalized to a LogEvent value; anything else is logged as
      "unknown" with the original under event_raw
    - team: explicit extra, otherwise the team bound to the request; clipped
    - duration_ms: rounded to 0.1 ms
    """

    def __init__(
        self,
        *args: Any,
        schema_version: str = "1.0",
        service: str = "team-balancer",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._schema_version = schema_version
        self._service = service

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["schema_version"] = self._schema_version
        log_record["service"] = self._service

        if trace_id := get_trace_id():
            log_record["trace_id"] = trace_id

        if "event" in log_record:
            event = log_record["event"]
            event = event.value if isinstance(event, LogEvent) else str(event)
            if event not in _KNOWN_EVENTS:
                log_record["event_raw"] = event
                event = UNKNOWN_EVENT
            log_record["event"] = event

        team = log_record.get("team") or get_team()
        if team is not None:
            log_record["team"] = str(team)[:MAX_LOGGED_TEAM_LENGTH]

        if isinstance(log_record.get("duration_ms"), float):
            log_record["duration_ms"] = round(log_record["duration_ms"], 1)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        log_record.pop("color_message", None)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure JSON logging on the root and uvicorn loggers."""
    if config is None:
        config = get_settings().logging

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        BalancerJsonFormatter(
            schema_version=config.schema_version,
            service=config.service_name,
        )
    )
    handler.addFilter(RateLimitFilter(config.rate_limit_per_minute))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = False
        uv_logger.addHandler(handler)

    # LoggingMiddleware writes the request line
    logging.getLogger("uvicorn.access").disabled = True

    # Kubernetes client logs every request at DEBUG/INFO
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
