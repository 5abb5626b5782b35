"""Application configuration using pydantic-settings."""

import secrets
import string
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _random_admin_password() -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(8))


class AppConfig(BaseSettings):
    """Deployment environment.

    Selects the credential hashing profile (see SecurityConfig).
    """

    model_config = SettingsConfigDict(env_prefix="APP_")

    environment: Literal["development", "production"] = Field(default="development")


class ServerConfig(BaseSettings):
    """HTTP server binding."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)


class AdminConfig(BaseSettings):
    """Admin identity.

    The admin username is a reserved team name. The password is provisioned by
    the operator (ADMIN_PASSWORD) and must have the same shape as a team
    passcode: 8 uppercase alphanumeric characters.
    """

    model_config = SettingsConfigDict(env_prefix="ADMIN_")

    username: str = Field(default="admin")
    password: str = Field(default_factory=_random_admin_password)


class CookieConfig(BaseSettings):
    """Session cookie configuration."""

    model_config = SettingsConfigDict(env_prefix="COOKIE_")

    name: str = Field(default="balancer")
    # Must be shared with the front door that verifies the signature.
    # The per-process default only suits single-replica development setups.
    secret: str = Field(default_factory=lambda: secrets.token_hex(32))
    secure: bool = Field(default=False)  # Set True in production (HTTPS)


class LimitsConfig(BaseSettings):
    """Instance admission limits."""

    model_config = SettingsConfigDict(env_prefix="LIMITS_")

    max_instances: int = Field(default=10)  # negative = uncapped


class SecurityConfig(BaseSettings):
    """Passcode hashing cost.

    Unset values fall back to the profile of AppConfig.environment:
      production  → argon2 defaults (time_cost=3, memory_cost=64 MiB)
      development → time_cost=1, memory_cost=1 MiB
    """

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    hash_time_cost: int | None = Field(default=None)
    hash_memory_cost: int | None = Field(default=None)  # KiB


class ReadinessConfig(BaseSettings):
    """Readiness wait bounds (default 180 x 1s = 3 minutes)."""

    model_config = SettingsConfigDict(env_prefix="READINESS_")

    poll_interval: float = Field(default=1.0)  # seconds
    max_attempts: int = Field(default=180)


class KubernetesConfig(BaseSettings):
    """Kubernetes settings for team instances."""

    model_config = SettingsConfigDict(env_prefix="KUBERNETES_")

    namespace: str = Field(default="default")
    deployment_context: str = Field(default="balancer")
    image: str = Field(default="bkimminich/juice-shop")
    tag: str = Field(default="latest")
    container_port: int = Field(default=3000)
    in_cluster: bool | None = Field(default=None)  # None = try in-cluster, then kubeconfig


class MetricsConfig(BaseSettings):
    """Prometheus metrics configuration."""

    model_config = SettingsConfigDict(env_prefix="METRICS_")

    enabled: bool = Field(default=True)
    basic_auth_username: str | None = Field(default=None)
    basic_auth_password: str | None = Field(default=None)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Standard fields added to all logs:
    - schema_version: Log schema version for backwards compatibility
    - service: Service name (team-balancer)

    Rate limiting:
    - Prevents log storms from repeated messages
    - ERROR logs bypass rate limiting (always logged)
    """

    model_config = SettingsConfigDict(env_prefix="LOGGING_")

    level: str = Field(default="INFO")
    schema_version: str = Field(default="1.0")
    slow_threshold_ms: float = Field(default=1000.0)
    rate_limit_per_minute: int = Field(default=100)
    service_name: str = Field(default="team-balancer")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BALANCER_",
        env_nested_delimiter="__",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    cookie: CookieConfig = Field(default_factory=CookieConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)
    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    return Settings()
