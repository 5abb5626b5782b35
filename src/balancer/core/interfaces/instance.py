"""Instance registry interface for the container orchestration backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class TeamInstance:
    """Normalized observation of a team's instance."""

    team: str
    ready_replicas: int
    passcode_hash: str

    @property
    def ready(self) -> bool:
        return self.ready_replicas == 1


class InstanceRegistry(ABC):
    """Interface the team pipeline needs from the orchestration backend.

    Implementations: KubernetesInstanceRegistry

    Readiness is observed by polling get_by_team; there is no watch.
    """

    @abstractmethod
    async def get_by_team(self, team: str) -> TeamInstance:
        """Look up the instance of a team.

        Raises:
            InstanceNotFoundError: The team has no instance
            RegistryError: Any other backend failure
        """
        ...

    @abstractmethod
    async def create(self, team: str, passcode_hash: str) -> None:
        """Provision the instance and its network endpoint.

        Not rolled back on partial failure; leftovers are removed by the
        external reaper.

        Raises:
            InstanceAlreadyExistsError: A concurrent create won the race
            RegistryError: Any other backend failure
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[TeamInstance]:
        """List all team instances managed by this balancer."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
