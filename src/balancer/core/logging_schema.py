"""Logging field schema - v1.0

Standard fields (added to all logs):
- schema_version: Log schema version
- service: Service name (team-balancer)
- event: Event type (team_joined, instance_created, etc.)
- trace_id: Request trace ID (X-Trace-ID header)
- duration_ms: Duration in milliseconds

High cardinality fields (OK in logs, NOT in metric labels):
- team: Team name
"""

from enum import StrEnum


class LogEvent(StrEnum):
    """Standard log event types.

    Use these event types in the 'event' extra field for consistent
    log filtering and analysis.
    """

    # Join pipeline events
    ADMIN_LOGIN = "admin_login"
    TEAM_JOINED = "team_joined"
    TEAM_LOOKUP_FAILED = "team_lookup_failed"
    CAPACITY_CHECKED = "capacity_checked"
    CAPACITY_REACHED = "capacity_reached"
    CAPACITY_CHECK_FAILED = "capacity_check_failed"
    INSTANCE_CREATING = "instance_creating"
    INSTANCE_CREATED = "instance_created"
    INSTANCE_CREATE_FAILED = "instance_create_failed"
    INSTANCE_CONFLICT = "instance_conflict"

    # Readiness events
    READINESS_WAITING = "readiness_waiting"
    READINESS_READY = "readiness_ready"
    READINESS_TIMEOUT = "readiness_timeout"
    READINESS_FAILED = "readiness_failed"

    # Kubernetes events
    K8S_CONFIG_LOADED = "k8s_config_loaded"

    # Lifecycle events
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # API events
    REQUEST_COMPLETE = "request_complete"
    REQUEST_FAILED = "request_failed"
    REQUEST_SLOW = "request_slow"
