"""Kubernetes API client wrapper.

Loads configuration lazily on first use:
1. In-cluster config (when running in K8s)
2. KUBECONFIG environment variable / default ~/.kube/config

Configuration via KubernetesConfig (KUBERNETES_ env prefix).
"""

import logging

from kubernetes import client, config

from balancer.app.config import get_settings
from balancer.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class KubernetesClient:
    """Holds the API client and the typed API groups the balancer uses."""

    def __init__(self, namespace: str, in_cluster: bool | None = None) -> None:
        self._namespace = namespace
        self._in_cluster = in_cluster
        self._api_client: client.ApiClient | None = None
        self._apps_v1: client.AppsV1Api | None = None
        self._core_v1: client.CoreV1Api | None = None

    def _ensure_loaded(self) -> client.ApiClient:
        if self._api_client is not None:
            return self._api_client

        if self._in_cluster is True:
            config.load_incluster_config()
            source = "incluster"
        elif self._in_cluster is False:
            config.load_kube_config()
            source = "kubeconfig"
        else:
            try:
                config.load_incluster_config()
                source = "incluster"
            except config.ConfigException:
                config.load_kube_config()
                source = "kubeconfig"

        logger.info(
            "Loaded Kubernetes config",
            extra={"event": LogEvent.K8S_CONFIG_LOADED, "source": source},
        )
        self._api_client = client.ApiClient()
        return self._api_client

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def apps_v1(self) -> client.AppsV1Api:
        if self._apps_v1 is None:
            self._apps_v1 = client.AppsV1Api(self._ensure_loaded())
        return self._apps_v1

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api(self._ensure_loaded())
        return self._core_v1

    def close(self) -> None:
        if self._api_client is not None:
            self._api_client.close()
            self._api_client = None
            self._apps_v1 = None
            self._core_v1 = None


_kubernetes_client: KubernetesClient | None = None


def get_kubernetes_client() -> KubernetesClient:
    global _kubernetes_client
    if _kubernetes_client is None:
        k8s = get_settings().kubernetes
        _kubernetes_client = KubernetesClient(k8s.namespace, k8s.in_cluster)
    return _kubernetes_client
