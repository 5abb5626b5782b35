"""FastAPI application entry point."""

import logging
import secrets
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from balancer import __version__
from balancer.adapters.instance import KubernetesInstanceRegistry
from balancer.app.api.dependencies import MetricsDep
from balancer.app.api.v1 import teams_router
from balancer.app.config import MetricsConfig, Settings, get_settings
from balancer.app.logging import setup_logging
from balancer.app.metrics import MetricsRecorder, get_metrics_response
from balancer.app.middleware import LoggingMiddleware
from balancer.core.errors import BalancerError, ErrorResponse
from balancer.core.interfaces import InstanceRegistry
from balancer.core.logging_schema import LogEvent
from balancer.core.security import create_hasher
from balancer.services import (
    AdmissionController,
    CredentialVerifier,
    SessionIssuer,
    TeamService,
)

logger = logging.getLogger(__name__)

_basic_auth = HTTPBasic(auto_error=False)


def build_team_service(
    settings: Settings, registry: InstanceRegistry, metrics: MetricsRecorder
) -> TeamService:
    """Wire the join pipeline from settings."""
    hasher = create_hasher(
        settings.app.environment,
        time_cost=settings.security.hash_time_cost,
        memory_cost=settings.security.hash_memory_cost,
    )
    return TeamService(
        registry=registry,
        verifier=CredentialVerifier(settings.admin, hasher, metrics),
        sessions=SessionIssuer(settings.cookie),
        admission=AdmissionController(registry, settings.limits.max_instances),
        metrics=metrics,
        readiness=settings.readiness,
    )


async def balancer_error_handler(_request: Request, exc: BalancerError) -> JSONResponse:
    """Handle BalancerError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are 400, like pipeline validation errors."""
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(message=message).model_dump(exclude_none=True),
    )


def _check_metrics_auth(
    request: Request,
    credentials: Annotated[HTTPBasicCredentials | None, Depends(_basic_auth)],
) -> None:
    metrics_config: MetricsConfig = request.app.state.settings.metrics
    if not metrics_config.enabled:
        raise HTTPException(status_code=404)

    username = metrics_config.basic_auth_username
    password = metrics_config.basic_auth_password
    if username is None or password is None:
        return

    authorized = credentials is not None and (
        secrets.compare_digest(credentials.username.encode(), username.encode())
        & secrets.compare_digest(credentials.password.encode(), password.encode())
    )
    if not authorized:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )


def create_app(
    settings: Settings | None = None,
    registry: InstanceRegistry | None = None,
    metrics: MetricsRecorder | None = None,
) -> FastAPI:
    """Create the balancer application.

    Args:
        settings: Defaults to get_settings()
        registry: Defaults to KubernetesInstanceRegistry
        metrics: Defaults to a fresh MetricsRecorder
    """
    settings = settings or get_settings()
    registry = registry or KubernetesInstanceRegistry()
    metrics = metrics or MetricsRecorder()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting application",
            extra={
                "event": LogEvent.APP_STARTED,
                "environment": settings.app.environment,
                "max_instances": settings.limits.max_instances,
            },
        )
        yield
        logger.info("Shutting down application", extra={"event": LogEvent.APP_STOPPED})
        await registry.close()

    app = FastAPI(title="Team Balancer", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.team_service = build_team_service(settings, registry, metrics)

    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(BalancerError, balancer_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(teams_router, prefix="/balancer/teams")

    @app.get("/balancer/")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get(
        "/balancer/metrics",
        include_in_schema=False,
        dependencies=[Depends(_check_metrics_auth)],
    )
    async def prometheus_metrics(recorder: MetricsDep):
        """Prometheus metrics endpoint."""
        return get_metrics_response(recorder)

    return app


def main() -> None:
    settings = get_settings()
    setup_logging(settings.logging)
    server = settings.server
    uvicorn.run(
        create_app(settings),
        host=server.host,
        port=server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
