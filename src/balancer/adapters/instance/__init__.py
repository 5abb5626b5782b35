from balancer.adapters.instance.kubernetes import KubernetesInstanceRegistry

__all__ = ["KubernetesInstanceRegistry"]
