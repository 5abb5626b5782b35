"""Infrastructure connections (Kubernetes)."""

from balancer.infra.kubernetes import KubernetesClient, get_kubernetes_client

__all__ = [
    "KubernetesClient",
    "get_kubernetes_client",
]
