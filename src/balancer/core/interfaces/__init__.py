"""Core interfaces for the control plane."""

from balancer.core.interfaces.instance import InstanceRegistry, TeamInstance

__all__ = [
    "InstanceRegistry",
    "TeamInstance",
]
