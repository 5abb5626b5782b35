"""Prometheus metrics definitions.

All collectors live on one MetricsRecorder instance created at application
start-up and handed to the pipeline and the request middleware. Nothing is
registered on the prometheus_client default registry.
"""

from enum import StrEnum

from prometheus_client import CollectorRegistry, Counter, Histogram

# MEDIUM: API calls, registry round-trips, readiness waits (5ms ~ 180s)
_BUCKETS_MEDIUM = (
    0.005, 0.01, 0.02, 0.04, 0.09,
    0.18, 0.36, 0.73, 1.5, 3,
    6.2, 12.7, 26, 53, 180,
)  # 15 buckets


class LoginType(StrEnum):
    LOGIN = "login"
    REGISTRATION = "registration"


class UserType(StrEnum):
    ADMIN = "admin"
    USER = "user"


class MetricsRecorder:
    """Login outcome and HTTP request metrics.

    Passive observer: recording never affects control flow. prometheus_client
    counters are safe for concurrent increments.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        # =====================================================================
        # Login Metrics
        # =====================================================================
        self.logins = Counter(
            "balancer_logins",
            "Number of logins (including registrations, see label 'type')",
            ["type", "user_type"],
            registry=self.registry,
        )
        self.failed_logins = Counter(
            "balancer_failed_logins",
            "Number of failed logins, bad passcode (including admin logins)",
            ["user_type"],
            registry=self.registry,
        )

        # =====================================================================
        # HTTP Metrics
        # =====================================================================
        self.http_requests = Counter(
            "balancer_http_requests",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )
        self.http_request_duration = Histogram(
            "balancer_http_request_duration_seconds",
            "HTTP request duration",
            ["method", "endpoint"],
            buckets=_BUCKETS_MEDIUM,
            registry=self.registry,
        )

    def record_login(self, login_type: LoginType, user_type: UserType) -> None:
        self.logins.labels(type=login_type, user_type=user_type).inc()

    def record_failed_login(self, user_type: UserType) -> None:
        self.failed_logins.labels(user_type=user_type).inc()

    def login_count(self, login_type: LoginType, user_type: UserType) -> float:
        """Current login counter value."""
        value = self.registry.get_sample_value(
            "balancer_logins_total",
            {"type": login_type.value, "user_type": user_type.value},
        )
        return value or 0.0

    def failed_login_count(self, user_type: UserType) -> float:
        value = self.registry.get_sample_value(
            "balancer_failed_logins_total", {"user_type": user_type.value}
        )
        return value or 0.0
