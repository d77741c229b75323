"""Liveness and readiness probes for the Herald service."""

from herald.api.health.resources import HealthResource, ReadyResource

__all__ = ["HealthResource", "ReadyResource"]
