"""Partial-failure tolerance for multi-feed aggregation."""

from .fallback import with_default
from .health import HealthMonitor

__all__ = [
    "with_default",
    "HealthMonitor",
]
