"""Shared fixtures for unit tests."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from balancer.app.config import (
    AdminConfig,
    CookieConfig,
    LimitsConfig,
    MetricsConfig,
    ReadinessConfig,
    Settings,
)
from balancer.app.main import build_team_service, create_app
from balancer.app.metrics import MetricsRecorder
from balancer.core.errors import InstanceAlreadyExistsError, InstanceNotFoundError
from balancer.core.interfaces import InstanceRegistry, TeamInstance
from balancer.core.security import create_hasher, hash_passcode

# Unaffected by tests that patch asyncio.sleep
_yield_to_loop = asyncio.sleep

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "ADMIN123"
COOKIE_SECRET = "test-cookie-secret"


class FakeInstanceRegistry(InstanceRegistry):
    """In-memory InstanceRegistry.

    Set *_error attributes to make the next calls fail.
    """

    def __init__(self) -> None:
        self.instances: dict[str, TeamInstance] = {}
        self.get_calls = 0
        self.create_calls = 0
        self.list_calls = 0
        self.get_error: Exception | None = None
        self.create_error: Exception | None = None
        self.list_error: Exception | None = None

    def add(self, team: str, passcode_hash: str, ready_replicas: int = 1) -> TeamInstance:
        instance = TeamInstance(team=team, ready_replicas=ready_replicas, passcode_hash=passcode_hash)
        self.instances[team] = instance
        return instance

    async def get_by_team(self, team: str) -> TeamInstance:
        self.get_calls += 1
        # Yield like a network round-trip so concurrent requests interleave
        await _yield_to_loop(0)
        if self.get_error is not None:
            raise self.get_error
        if team not in self.instances:
            raise InstanceNotFoundError(team)
        return self.instances[team]

    async def create(self, team: str, passcode_hash: str) -> None:
        self.create_calls += 1
        if self.create_error is not None:
            raise self.create_error
        if team in self.instances:
            raise InstanceAlreadyExistsError(team)
        self.add(team, passcode_hash, ready_replicas=0)

    async def list_all(self) -> list[TeamInstance]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.instances.values())


@pytest.fixture
def registry() -> FakeInstanceRegistry:
    return FakeInstanceRegistry()


@pytest.fixture
def metrics() -> MetricsRecorder:
    return MetricsRecorder()


@pytest.fixture
def hasher():
    return create_hasher("development")


@pytest.fixture
def hash_for(hasher):
    """Hash a passcode with the test hasher."""

    def _hash(passcode: str) -> str:
        return hash_passcode(hasher, passcode)

    return _hash


@pytest.fixture
def settings() -> Settings:
    return Settings(
        admin=AdminConfig(username=ADMIN_USERNAME, password=ADMIN_PASSWORD),
        cookie=CookieConfig(name="balancer", secret=COOKIE_SECRET, secure=False),
        limits=LimitsConfig(max_instances=-1),
        readiness=ReadinessConfig(poll_interval=0.0, max_attempts=180),
        metrics=MetricsConfig(enabled=True),
    )


@pytest.fixture
def team_service(settings, registry, metrics):
    return build_team_service(settings, registry, metrics)


@pytest.fixture
def app(settings, registry, metrics):
    return create_app(settings=settings, registry=registry, metrics=metrics)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
