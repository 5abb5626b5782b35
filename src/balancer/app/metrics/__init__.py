"""Prometheus metrics module."""

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from balancer.app.metrics.collector import LoginType, MetricsRecorder, UserType


def get_metrics_response(recorder: MetricsRecorder) -> Response:
    """Render the recorder's registry in Prometheus text format."""
    return Response(
        content=generate_latest(recorder.registry),
        media_type=CONTENT_TYPE_LATEST,
    )


__all__ = [
    "LoginType",
    "MetricsRecorder",
    "UserType",
    "get_metrics_response",
]
