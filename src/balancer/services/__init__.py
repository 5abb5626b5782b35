"""Request-scoped services composing the join pipeline."""

from balancer.services.admission import AdmissionController, AdmissionDecision
from balancer.services.credentials import CredentialVerifier
from balancer.services.session_service import SessionCookie, SessionIssuer
from balancer.services.team_service import JoinContext, JoinResult, TeamService

__all__ = [
    "AdmissionController",
    "AdmissionDecision",
    "CredentialVerifier",
    "JoinContext",
    "JoinResult",
    "SessionCookie",
    "SessionIssuer",
    "TeamService",
]
