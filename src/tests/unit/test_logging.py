"""Tests for logging setup and rate limiting."""

import json
import logging

import pytest

from balancer.app.logging import (
    MAX_LOGGED_TEAM_LENGTH,
    BalancerJsonFormatter,
    RateLimitFilter,
    clear_request_context,
    get_team,
    get_trace_id,
    set_team,
    set_trace_id,
)
from balancer.core.logging_schema import LogEvent


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("balancer.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _format(record: logging.LogRecord) -> dict:
    return json.loads(BalancerJsonFormatter(service="team-balancer").format(record))


@pytest.fixture(autouse=True)
def _clean_context():
    yield
    clear_request_context()


class TestRequestContext:
    def test_set_generates_id(self) -> None:
        tid = set_trace_id()
        assert tid
        assert get_trace_id() == tid
        clear_request_context()
        assert get_trace_id() is None

    def test_set_uses_given_id(self) -> None:
        assert set_trace_id("abc") == "abc"

    def test_clear_drops_team(self) -> None:
        set_team("team-a")
        assert get_team() == "team-a"
        clear_request_context()
        assert get_team() is None


class TestRateLimitFilter:
    def test_allows_up_to_rate(self) -> None:
        f = RateLimitFilter(rate_per_minute=3)
        assert [f.filter(_record("same")) for _ in range(3)] == [True, True, True]

    def test_marks_first_suppressed_then_drops(self) -> None:
        f = RateLimitFilter(rate_per_minute=2)
        f.filter(_record("same"))
        f.filter(_record("same"))

        marked = _record("same")
        assert f.filter(marked)
        assert marked.msg.startswith("[RATE LIMITED]")
        assert not f.filter(_record("same"))

    def test_errors_bypass(self) -> None:
        f = RateLimitFilter(rate_per_minute=1)
        f.filter(_record("same", logging.ERROR))
        assert all(f.filter(_record("same", logging.ERROR)) for _ in range(5))

    def test_different_messages_counted_separately(self) -> None:
        f = RateLimitFilter(rate_per_minute=1)
        assert f.filter(_record("a"))
        assert f.filter(_record("b"))

    def test_same_event_shares_budget_across_teams(self) -> None:
        f = RateLimitFilter(rate_per_minute=2)
        for team in ("team-a", "team-b"):
            assert f.filter(_record("Joined %s", event=LogEvent.TEAM_JOINED, team=team))

        marked = _record("Joined %s", event=LogEvent.TEAM_JOINED, team="team-c")
        assert f.filter(marked)
        assert marked.msg.startswith("[RATE LIMITED]")
        assert not f.filter(_record("Joined %s", event=LogEvent.TEAM_JOINED, team="team-d"))


class TestJsonFormatter:
    def test_standard_fields(self) -> None:
        set_trace_id("trace-1")

        payload = _format(_record("hello", event=LogEvent.TEAM_JOINED, team="team-a"))

        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "balancer.test"
        assert payload["service"] == "team-balancer"
        assert payload["schema_version"] == "1.0"
        assert payload["trace_id"] == "trace-1"
        assert payload["event"] == "team_joined"
        assert payload["team"] == "team-a"

    def test_known_event_string_kept(self) -> None:
        payload = _format(_record("hello", event="instance_created"))
        assert payload["event"] == "instance_created"
        assert "event_raw" not in payload

    def test_unknown_event_flagged(self) -> None:
        payload = _format(_record("hello", event="team_exploded"))

        assert payload["event"] == "unknown"
        assert payload["event_raw"] == "team_exploded"

    def test_team_from_request_context(self) -> None:
        set_team("team-b")

        payload = _format(_record("hello"))

        assert payload["team"] == "team-b"

    def test_explicit_team_wins_over_context(self) -> None:
        set_team("team-b")

        payload = _format(_record("hello", team="team-a"))

        assert payload["team"] == "team-a"

    def test_team_clipped(self) -> None:
        payload = _format(_record("hello", team="x" * 500))
        assert payload["team"] == "x" * MAX_LOGGED_TEAM_LENGTH

    def test_no_team_outside_team_routes(self) -> None:
        assert "team" not in _format(_record("hello"))

    def test_duration_rounded(self) -> None:
        payload = _format(_record("done", duration_ms=12.34567))
        assert payload["duration_ms"] == 12.3

