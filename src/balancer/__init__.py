"""Team instance balancer - control plane for per-team playground instances."""

__version__ = "0.1.0"
