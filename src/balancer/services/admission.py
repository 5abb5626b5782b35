"""Admission control for new team instances.

Answers "may one more instance be created?" against LIMITS_MAX_INSTANCES.
The check and the following create are not atomic; two concurrent first joins
may both be admitted at the cap. That overshoot is bounded by the number of
concurrent requests and accepted.
"""

import logging
from enum import StrEnum

from balancer.core.interfaces import InstanceRegistry
from balancer.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class AdmissionDecision(StrEnum):
    ALLOW = "allow"
    DENY = "deny"


class AdmissionController:
    """Global instance cap check.

    Fails open: if the registry cannot be listed, creation is allowed and the
    failure is logged.
    """

    def __init__(self, registry: InstanceRegistry, max_instances: int) -> None:
        self._registry = registry
        self._max_instances = max_instances

    async def check_capacity(self) -> AdmissionDecision:
        if self._max_instances < 0:
            logger.debug(
                "Skipping max instance check, max instances is set to %d",
                self._max_instances,
            )
            return AdmissionDecision.ALLOW

        try:
            instances = await self._registry.list_all()
        except Exception as e:
            logger.error(
                "Failed to check max instances",
                extra={"event": LogEvent.CAPACITY_CHECK_FAILED, "error": str(e)},
            )
            return AdmissionDecision.ALLOW

        count = len(instances)
        logger.info(
            "Reached %d/%d instances",
            count,
            self._max_instances,
            extra={
                "event": LogEvent.CAPACITY_CHECKED,
                "count": count,
                "max_instances": self._max_instances,
            },
        )
        if count >= self._max_instances:
            return AdmissionDecision.DENY
        return AdmissionDecision.ALLOW
