"""Health tracking for calendar feed sources."""

from datetime import datetime
from typing import Any

import structlog

from ..models import FetchStats

logger = structlog.get_logger()


class HealthMonitor:
    """Track the outcome of each source across aggregate requests.

    One monitor lives for the lifetime of the server process; each
    aggregate request reports every source's FetchStats into it.
    """

    def __init__(self):
        self.status: dict[str, dict[str, Any]] = {}

    def record(self, stats: FetchStats) -> None:
        """Record the outcome of one source fetch."""
        if stats.status == "success":
            self.record_success(stats.source, stats.count, stats.duration_ms)
        else:
            self.record_failure(stats.source, stats.error_message or "unknown error", stats.duration_ms)

    def record_success(self, source: str, event_count: int, duration_ms: int | None = None) -> None:
        """Record a successful fetch from a source.

        Args:
            source: Source rule name
            event_count: Number of normalized events the source produced
            duration_ms: Time taken by fetch, parse and normalize
        """
        self.status[source] = {
            "healthy": True,
            "last_check": datetime.now().isoformat(),
            "event_count": event_count,
            "duration_ms": duration_ms,
            "consecutive_failures": 0,
            "last_error": None,
        }
        logger.debug("source_healthy", source=source, event_count=event_count)

    def record_failure(self, source: str, error: str, duration_ms: int | None = None) -> None:
        """Record a failed fetch from a source.

        Args:
            source: Source rule name
            error: Error message describing the failure
            duration_ms: Time spent before the source failed
        """
        consecutive = self.status.get(source, {}).get("consecutive_failures", 0) + 1

        self.status[source] = {
            "healthy": False,
            "last_check": datetime.now().isoformat(),
            "event_count": 0,
            "duration_ms": duration_ms,
            "consecutive_failures": consecutive,
            "last_error": error,
        }
        logger.warning(
            "source_unhealthy",
            source=source,
            consecutive_failures=consecutive,
            error=error,
        )

    def is_healthy(self, source: str) -> bool:
        """Unknown sources count as healthy."""
        return self.status.get(source, {}).get("healthy", True)

    def get_status(self) -> dict[str, Any]:
        """Get full health status report.

        Returns:
            Dict with timestamp, counts and all source statuses
        """
        healthy_count = sum(1 for s in self.status.values() if s["healthy"])
        total_count = len(self.status)

        return {
            "timestamp": datetime.now().isoformat(),
            "summary": {
                "healthy": healthy_count,
                "unhealthy": total_count - healthy_count,
                "total": total_count,
            },
            "sources": self.status,
        }
