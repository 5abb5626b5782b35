"""Tests for MetricsRecorder and request path normalization."""

import pytest
from prometheus_client import REGISTRY

from balancer.app.metrics import LoginType, MetricsRecorder, UserType, get_metrics_response
from balancer.app.middleware.logging import normalize_path


class TestMetricsRecorder:
    def test_counters_start_at_zero(self) -> None:
        metrics = MetricsRecorder()

        for login_type in LoginType:
            for user_type in UserType:
                assert metrics.login_count(login_type, user_type) == 0
        assert metrics.failed_login_count(UserType.USER) == 0

    def test_record_login(self) -> None:
        metrics = MetricsRecorder()

        metrics.record_login(LoginType.LOGIN, UserType.ADMIN)
        metrics.record_login(LoginType.REGISTRATION, UserType.USER)
        metrics.record_login(LoginType.REGISTRATION, UserType.USER)

        assert metrics.login_count(LoginType.LOGIN, UserType.ADMIN) == 1
        assert metrics.login_count(LoginType.REGISTRATION, UserType.USER) == 2
        assert metrics.login_count(LoginType.LOGIN, UserType.USER) == 0

    def test_record_failed_login(self) -> None:
        metrics = MetricsRecorder()

        metrics.record_failed_login(UserType.USER)

        assert metrics.failed_login_count(UserType.USER) == 1
        assert metrics.failed_login_count(UserType.ADMIN) == 0

    def test_recorders_are_independent(self) -> None:
        first = MetricsRecorder()
        second = MetricsRecorder()

        first.record_failed_login(UserType.ADMIN)

        assert second.failed_login_count(UserType.ADMIN) == 0

    def test_default_registry_untouched(self) -> None:
        MetricsRecorder()
        assert REGISTRY.get_sample_value("balancer_failed_logins_total", {"user_type": "user"}) is None

    def test_metrics_response(self) -> None:
        metrics = MetricsRecorder()
        metrics.record_failed_login(UserType.USER)

        response = get_metrics_response(metrics)

        assert response.media_type.startswith("text/plain")
        assert b'balancer_failed_logins_total{user_type="user"} 1.0' in response.body


class TestNormalizePath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/balancer/teams/team-a/join", "/balancer/teams/:team/join"),
            ("/balancer/teams/xyz/wait-till-ready", "/balancer/teams/:team/wait-till-ready"),
            ("/balancer/teams/logout", "/balancer/teams/logout"),
            ("/balancer/teams/team-a/join/extra", "other"),
            ("/something/else", "other"),
        ],
    )
    def test_normalize(self, path: str, expected: str) -> None:
        assert normalize_path(path) == expected
