"""Tests for settings loading."""

from balancer.app.config import AdminConfig, CookieConfig, Settings
from balancer.core.security import is_valid_passcode


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("LIMITS_MAX_INSTANCES", "READINESS_MAX_ATTEMPTS", "READINESS_POLL_INTERVAL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.app.environment == "development"
        assert settings.limits.max_instances == 10
        assert settings.readiness.max_attempts == 180
        assert settings.readiness.poll_interval == 1.0
        assert settings.cookie.secure is False

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("LIMITS_MAX_INSTANCES", "-1")
        monkeypatch.setenv("COOKIE_SECURE", "true")
        monkeypatch.setenv("ADMIN_PASSWORD", "SECRET12")

        settings = Settings()

        assert settings.limits.max_instances == -1
        assert settings.cookie.secure is True
        assert settings.admin.password == "SECRET12"

    def test_generated_admin_password_has_passcode_shape(self, monkeypatch) -> None:
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
        assert is_valid_passcode(AdminConfig().password)

    def test_generated_cookie_secret(self, monkeypatch) -> None:
        monkeypatch.delenv("COOKIE_SECRET", raising=False)
        assert len(CookieConfig().secret) == 64
