"""API v1 module."""

from balancer.app.api.v1.teams import router as teams_router

__all__ = ["teams_router"]
