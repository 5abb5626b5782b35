"""Team API endpoints.

Endpoints:
- POST /balancer/teams/{team}/join - Join an existing team or create its instance
- GET /balancer/teams/{team}/wait-till-ready - Block until the team's instance is ready
- POST /balancer/teams/logout - Drop the session cookie
"""

from fastapi import APIRouter, Response
from pydantic import BaseModel, ConfigDict

from balancer.app.api.dependencies import TeamServiceDep
from balancer.core.errors import ValidationError

router = APIRouter(tags=["teams"])


class JoinRequest(BaseModel):
    """Request schema for join. Shape is checked by the join pipeline."""

    model_config = ConfigDict(extra="forbid")

    passcode: str | None = None


class JoinResponse(BaseModel):
    """Response schema for join. passcode is only present on creation."""

    message: str
    passcode: str | None = None


@router.post("/logout")
async def logout(response: Response, teams: TeamServiceDep) -> dict[str, str]:
    """Logout by expiring the session cookie.

    Always succeeds (even if no session cookie present).
    """
    teams.logout().apply(response)
    return {"message": "Logged out"}


@router.post("/{team}/join", response_model_exclude_none=True)
async def join(
    team: str,
    response: Response,
    teams: TeamServiceDep,
    body: JoinRequest | None = None,
) -> JoinResponse:
    """Join a team.

    Existing team: requires its passcode, returns 401 otherwise.
    New team: creates the instance and returns the generated passcode once.
    On success, sets the session cookie.
    """
    passcode = None
    if body is not None:
        # Absent is "no passcode", an explicit null is malformed
        if "passcode" in body.model_fields_set and body.passcode is None:
            raise ValidationError("Passcode must be a string")
        passcode = body.passcode
    result = await teams.join(team, passcode)

    result.session.apply(response)
    return JoinResponse(message=result.message, passcode=result.passcode)


@router.get("/{team}/wait-till-ready")
async def wait_till_ready(team: str, teams: TeamServiceDep) -> Response:
    """Wait until the team's instance reports ready (bounded, default 3 minutes)."""
    await teams.wait_till_ready(team)
    return Response(status_code=200)
