"""Error handling module for the balancer.

This module defines the request-level exceptions and their response model.

Error Response Format:
{
    "message": "Reached Maximum Instance Count",
    "description": "Find an admin to handle this."
}

Usage:
    from balancer.core.errors import AuthenticationFailure, CapacityExhausted

    # Raise with default message
    raise AuthenticationFailure()

    # Raise with custom message
    raise InfrastructureError("Failed to Create Instance")

Registry errors (InstanceNotFoundError, InstanceAlreadyExistsError,
RegistryError) are raised by InstanceRegistry implementations and never reach
the client directly. The pipeline converts them into one of the request-level
errors above.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response format."""

    message: str
    description: str | None = None


class BalancerError(Exception):
    """Base exception for request-level failures.

    All terminal failure responses inherit from this class.
    This enables centralized exception handling in FastAPI.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code to return
        description: Optional hint for the caller
    """

    def __init__(
        self, message: str, status_code: int, description: str | None = None
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.description = description
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(message=self.message, description=self.description)


class ValidationError(BalancerError):
    """400 Bad Request - Malformed team name or passcode."""

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(message, 400)


class AuthenticationFailure(BalancerError):
    """401 Unauthorized - Wrong or missing passcode."""

    def __init__(self, message: str = "Team requires authentication to join") -> None:
        super().__init__(message, 401)


class CapacityExhausted(BalancerError):
    """500 - Instance cap reached. An operator has to free capacity."""

    def __init__(
        self,
        message: str = "Reached Maximum Instance Count",
        description: str = "Find an admin to handle this.",
    ) -> None:
        super().__init__(message, 500, description)


class InfrastructureError(BalancerError):
    """500 - Instance registry call failed."""

    def __init__(self, message: str = "Unknown error while looking for an existing instance") -> None:
        super().__init__(message, 500)


class ReadinessTimeout(BalancerError):
    """500 - Instance did not become ready within the polling bound."""

    def __init__(self, message: str = "Waiting for Deployment Readiness Timed Out") -> None:
        super().__init__(message, 500)


class RegistryError(Exception):
    """Instance registry call failed for a reason other than not-found/conflict."""


class InstanceNotFoundError(RegistryError):
    """The team has no instance."""

    def __init__(self, team: str) -> None:
        self.team = team
        super().__init__(f"Instance for team {team!r} not found")


class InstanceAlreadyExistsError(RegistryError):
    """Create was rejected because the team's instance already exists."""

    def __init__(self, team: str) -> None:
        self.team = team
        super().__init__(f"Instance for team {team!r} already exists")
