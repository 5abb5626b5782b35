"""Adapters module - infrastructure implementations."""

from balancer.adapters.instance import KubernetesInstanceRegistry

__all__ = [
    "KubernetesInstanceRegistry",
]
