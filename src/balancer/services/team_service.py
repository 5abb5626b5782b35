"""Team join pipeline and readiness wait.

A join request runs through an ordered list of stages:

    validate → intercept_admin → check_existing_team → check_admission → create_team

Each stage either returns None (continue with the next stage) or a JoinResult
(terminal success). Terminal failures are raised as BalancerError subclasses
and rendered by the API exception handler.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from balancer.app.config import ReadinessConfig
from balancer.app.metrics import LoginType, MetricsRecorder, UserType
from balancer.core.errors import (
    AuthenticationFailure,
    CapacityExhausted,
    InfrastructureError,
    InstanceAlreadyExistsError,
    InstanceNotFoundError,
    ReadinessTimeout,
    ValidationError,
)
from balancer.core.interfaces import InstanceRegistry
from balancer.core.logging_schema import LogEvent
from balancer.core.security import generate_passcode, is_valid_passcode, is_valid_team_name
from balancer.services.admission import AdmissionController, AdmissionDecision
from balancer.services.credentials import CredentialVerifier
from balancer.services.session_service import SessionCookie, SessionIssuer

logger = logging.getLogger(__name__)


@dataclass
class JoinContext:
    """Input of one join request."""

    team: str
    passcode: str | None = None


@dataclass
class JoinResult:
    """Successful join: message, session cookie and, on creation, the passcode."""

    message: str
    session: SessionCookie
    passcode: str | None = None


JoinStage = Callable[[JoinContext], Awaitable[JoinResult | None]]


class TeamService:
    """Joins teams to existing instances or creates new ones."""

    def __init__(
        self,
        registry: InstanceRegistry,
        verifier: CredentialVerifier,
        sessions: SessionIssuer,
        admission: AdmissionController,
        metrics: MetricsRecorder,
        readiness: ReadinessConfig,
    ) -> None:
        self._registry = registry
        self._verifier = verifier
        self._sessions = sessions
        self._admission = admission
        self._metrics = metrics
        self._poll_interval = readiness.poll_interval
        self._max_attempts = readiness.max_attempts

        self.join_stages: list[JoinStage] = [
            self.validate,
            self.intercept_admin,
            self.check_existing_team,
            self.check_admission,
            self.create_team,
        ]

    async def join(self, team: str, passcode: str | None = None) -> JoinResult:
        """Join an existing team instance or create one."""
        ctx = JoinContext(team=team, passcode=passcode)
        for stage in self.join_stages:
            result = await stage(ctx)
            if result is not None:
                return result
        raise RuntimeError(f"Join pipeline for team {team!r} ended without a result")

    # =========================================================================
    # Join stages
    # =========================================================================

    async def validate(self, ctx: JoinContext) -> JoinResult | None:
        if not is_valid_team_name(ctx.team):
            raise ValidationError(
                "Team name must be 3-16 lowercase alphanumeric characters or '-', "
                "starting and ending with an alphanumeric character"
            )
        if ctx.passcode is not None and not is_valid_passcode(ctx.passcode):
            raise ValidationError("Passcode must be 8 uppercase alphanumeric characters")
        return None

    async def intercept_admin(self, ctx: JoinContext) -> JoinResult | None:
        """The admin username is reserved and never reaches the registry."""
        if not self._verifier.is_admin(ctx.team):
            return None

        if self._verifier.verify_admin(ctx.team, ctx.passcode or ""):
            logger.info(
                "Signed in as admin",
                extra={"event": LogEvent.ADMIN_LOGIN, "team": ctx.team},
            )
            return JoinResult(
                message="Signed in as admin",
                session=self._sessions.issue(ctx.team),
            )
        raise AuthenticationFailure()

    async def check_existing_team(self, ctx: JoinContext) -> JoinResult | None:
        logger.debug("Checking if team %s already has an instance", ctx.team)

        try:
            instance = await self._registry.get_by_team(ctx.team)
        except InstanceNotFoundError:
            logger.info("Team %s doesn't have an instance yet", ctx.team)
            return None
        except Exception as e:
            logger.error(
                "Encountered unknown error while checking for existing instance",
                extra={
                    "event": LogEvent.TEAM_LOOKUP_FAILED,
                    "team": ctx.team,
                    "error": str(e),
                },
            )
            raise InfrastructureError() from e

        logger.debug("Team %s already has an instance", ctx.team)

        if await self._verifier.verify_team(ctx.passcode, instance.passcode_hash):
            logger.info(
                "Team joined",
                extra={"event": LogEvent.TEAM_JOINED, "team": ctx.team},
            )
            return JoinResult(
                message="Joined Team",
                session=self._sessions.issue(ctx.team),
            )
        raise AuthenticationFailure()

    async def check_admission(self, ctx: JoinContext) -> JoinResult | None:
        if await self._admission.check_capacity() == AdmissionDecision.DENY:
            logger.warning(
                "Max instance count reached",
                extra={"event": LogEvent.CAPACITY_REACHED, "team": ctx.team},
            )
            raise CapacityExhausted()
        return None

    async def create_team(self, ctx: JoinContext) -> JoinResult:
        team = ctx.team
        passcode = generate_passcode()

        logger.info(
            "Creating instance for team %s",
            team,
            extra={"event": LogEvent.INSTANCE_CREATING, "team": team},
        )
        try:
            passcode_hash = await self._verifier.hash(passcode)
            await self._registry.create(team, passcode_hash)
        except InstanceAlreadyExistsError:
            # Lost a concurrent create race: the team exists now, and this
            # caller cannot know its passcode.
            logger.info(
                "Instance for team %s was created concurrently",
                team,
                extra={"event": LogEvent.INSTANCE_CONFLICT, "team": team},
            )
            self._metrics.record_failed_login(UserType.USER)
            raise AuthenticationFailure()
        except Exception as e:
            logger.error(
                "Error while creating instance for team %s",
                team,
                extra={
                    "event": LogEvent.INSTANCE_CREATE_FAILED,
                    "team": team,
                    "error": str(e),
                },
            )
            raise InfrastructureError("Failed to Create Instance") from e

        logger.info(
            "Created instance for team %s",
            team,
            extra={"event": LogEvent.INSTANCE_CREATED, "team": team},
        )
        self._metrics.record_login(LoginType.REGISTRATION, UserType.USER)

        return JoinResult(
            message="Created Instance",
            session=self._sessions.issue(team),
            passcode=passcode,
        )

    # =========================================================================
    # Readiness / logout
    # =========================================================================

    async def wait_till_ready(self, team: str) -> None:
        """Poll the team's instance until it reports one ready replica.

        Polls at most max_attempts times, sleeping poll_interval between
        attempts. Any lookup error (including not-found) ends the wait.

        Raises:
            ValidationError: Malformed team name
            InfrastructureError: Lookup failed
            ReadinessTimeout: Not ready after max_attempts polls
        """
        if not is_valid_team_name(team):
            raise ValidationError("Invalid team name")

        logger.info(
            "Awaiting readiness of instance for team %s",
            team,
            extra={"event": LogEvent.READINESS_WAITING, "team": team},
        )

        for attempt in range(1, self._max_attempts + 1):
            try:
                instance = await self._registry.get_by_team(team)
            except Exception as e:
                logger.error(
                    "Failed to wait for team %s instance to get ready",
                    team,
                    extra={
                        "event": LogEvent.READINESS_FAILED,
                        "team": team,
                        "attempt": attempt,
                        "error": str(e),
                    },
                )
                raise InfrastructureError("Failed to Wait For Deployment Readiness") from e

            if instance.ready:
                logger.info(
                    "Instance for team %s ready",
                    team,
                    extra={"event": LogEvent.READINESS_READY, "team": team, "attempt": attempt},
                )
                return

            if attempt < self._max_attempts:
                await asyncio.sleep(self._poll_interval)

        logger.error(
            "Waiting for instance of team %s timed out",
            team,
            extra={
                "event": LogEvent.READINESS_TIMEOUT,
                "team": team,
                "attempts": self._max_attempts,
            },
        )
        raise ReadinessTimeout()

    def logout(self) -> SessionCookie:
        """Stateless logout: always hand out the expired cookie."""
        return self._sessions.revoke()
