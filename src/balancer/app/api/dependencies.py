"""FastAPI dependencies resolving per-application services from app.state."""

from typing import Annotated

from fastapi import Depends, Request

from balancer.app.metrics import MetricsRecorder
from balancer.services import TeamService


def get_team_service(request: Request) -> TeamService:
    return request.app.state.team_service


def get_metrics(request: Request) -> MetricsRecorder:
    return request.app.state.metrics


TeamServiceDep = Annotated[TeamService, Depends(get_team_service)]
MetricsDep = Annotated[MetricsRecorder, Depends(get_metrics)]
