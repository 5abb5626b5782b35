"""Kubernetes instance registry implementation.

Each team gets a Deployment and a Service, both named t-<team>-juiceshop:
- labels: app=juice-shop, team=<team>, deployment-context=<context>
- annotation multi-juicer.iteratec.de/passcode: Argon2 hash of the passcode

The kubernetes client is blocking, config loading included; API groups are
resolved and called inside worker threads.
"""

import asyncio
import logging

from kubernetes import client
from kubernetes.client.rest import ApiException

from balancer.app.config import get_settings
from balancer.core.errors import InstanceAlreadyExistsError, InstanceNotFoundError, RegistryError
from balancer.core.interfaces import InstanceRegistry, TeamInstance
from balancer.infra.kubernetes import KubernetesClient, get_kubernetes_client

logger = logging.getLogger(__name__)

APP_LABEL = "juice-shop"
PASSCODE_ANNOTATION = "multi-juicer.iteratec.de/passcode"


def resource_name(team: str) -> str:
    return f"t-{team}-juiceshop"


class KubernetesInstanceRegistry(InstanceRegistry):
    """Team instances backed by Kubernetes Deployments and Services."""

    def __init__(self, k8s: KubernetesClient | None = None) -> None:
        settings = get_settings()
        self._config = settings.kubernetes
        self._k8s = k8s or get_kubernetes_client()

    def _labels(self, team: str) -> dict[str, str]:
        return {
            "app": APP_LABEL,
            "team": team,
            "deployment-context": self._config.deployment_context,
        }

    def _to_instance(self, deployment: client.V1Deployment) -> TeamInstance:
        metadata = deployment.metadata
        labels = metadata.labels or {}
        annotations = metadata.annotations or {}
        status = deployment.status
        return TeamInstance(
            team=labels.get("team", ""),
            ready_replicas=(status.ready_replicas or 0) if status else 0,
            passcode_hash=annotations.get(PASSCODE_ANNOTATION, ""),
        )

    async def get_by_team(self, team: str) -> TeamInstance:
        try:
            deployment = await asyncio.to_thread(
                lambda: self._k8s.apps_v1.read_namespaced_deployment(
                    resource_name(team), self._k8s.namespace
                )
            )
        except ApiException as e:
            if e.status == 404:
                raise InstanceNotFoundError(team) from e
            raise RegistryError(f"Failed to read deployment for team {team!r}: {e.reason}") from e
        return self._to_instance(deployment)

    async def list_all(self) -> list[TeamInstance]:
        selector = f"app={APP_LABEL},deployment-context={self._config.deployment_context}"
        try:
            deployments = await asyncio.to_thread(
                lambda: self._k8s.apps_v1.list_namespaced_deployment(
                    self._k8s.namespace, label_selector=selector
                )
            )
        except ApiException as e:
            raise RegistryError(f"Failed to list deployments: {e.reason}") from e
        return [self._to_instance(d) for d in deployments.items]

    async def create(self, team: str, passcode_hash: str) -> None:
        namespace = self._k8s.namespace
        deployment = self._build_deployment(team, passcode_hash)
        service = self._build_service(team)

        try:
            await asyncio.to_thread(
                lambda: self._k8s.apps_v1.create_namespaced_deployment(namespace, deployment)
            )
        except ApiException as e:
            if e.status == 409:
                raise InstanceAlreadyExistsError(team) from e
            raise RegistryError(f"Failed to create deployment for team {team!r}: {e.reason}") from e

        # Deployment stays in place if the service fails; the reaper removes both.
        try:
            await asyncio.to_thread(
                lambda: self._k8s.core_v1.create_namespaced_service(namespace, service)
            )
        except ApiException as e:
            if e.status != 409:
                raise RegistryError(f"Failed to create service for team {team!r}: {e.reason}") from e
            logger.info("Service %s already exists, reusing it", resource_name(team))

        logger.info("Created deployment and service: %s", resource_name(team))

    def _build_deployment(self, team: str, passcode_hash: str) -> client.V1Deployment:
        name = resource_name(team)
        labels = self._labels(team)
        port = self._config.container_port

        return client.V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=client.V1ObjectMeta(
                name=name,
                labels=labels,
                annotations={PASSCODE_ANNOTATION: passcode_hash},
            ),
            spec=client.V1DeploymentSpec(
                replicas=1,
                selector=client.V1LabelSelector(match_labels={"app": APP_LABEL, "team": team}),
                template=client.V1PodTemplateSpec(
                    metadata=client.V1ObjectMeta(labels=labels),
                    spec=client.V1PodSpec(
                        containers=[
                            client.V1Container(
                                name="juice-shop",
                                image=f"{self._config.image}:{self._config.tag}",
                                ports=[client.V1ContainerPort(container_port=port)],
                                readiness_probe=client.V1Probe(
                                    http_get=client.V1HTTPGetAction(path="/rest/admin/application-version", port=port),
                                    initial_delay_seconds=5,
                                    period_seconds=2,
                                ),
                                liveness_probe=client.V1Probe(
                                    http_get=client.V1HTTPGetAction(path="/rest/admin/application-version", port=port),
                                    initial_delay_seconds=30,
                                    period_seconds=15,
                                ),
                            )
                        ],
                    ),
                ),
            ),
        )

    def _build_service(self, team: str) -> client.V1Service:
        port = self._config.container_port
        return client.V1Service(
            api_version="v1",
            kind="Service",
            metadata=client.V1ObjectMeta(name=resource_name(team), labels=self._labels(team)),
            spec=client.V1ServiceSpec(
                selector={"app": APP_LABEL, "team": team},
                ports=[client.V1ServicePort(port=port, target_port=port)],
            ),
        )

    async def close(self) -> None:
        self._k8s.close()
