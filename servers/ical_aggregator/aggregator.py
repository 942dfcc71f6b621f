"""
Concurrent fan-out/fan-in over calendar sources.

Every source runs as its own task. A source that fails to fetch, fails to
parse or exceeds the timeout contributes no events; it never aborts the
join. Cancelling the aggregate cancels every in-flight fetch.
"""

import asyncio
from datetime import datetime
from typing import Optional

import httpx
import structlog

from .errors import FetchError, ParseError
from .models import AggregateResult, Event, FetchStats, SourceRule
from .resilience import HealthMonitor, with_default
from .sources.adapter import load_source
from .sources.fetcher import DEFAULT_TIMEOUT, create_client

logger = structlog.get_logger()

# Errors that reduce a source to an empty contribution
SOURCE_ERRORS = (FetchError, ParseError)


async def _collect_source(
    rule: SourceRule,
    client: httpx.AsyncClient,
    timeout: float,
) -> tuple[list[Event], FetchStats]:
    """Load one source, converting its failure into an empty result."""
    started = datetime.now()
    failures: list[str] = []

    def record_failure(error: BaseException) -> None:
        if isinstance(error, asyncio.TimeoutError):
            failures.append(f"timed out after {timeout}s")
        else:
            failures.append(str(error))

    async def load_rule() -> list[Event]:
        return await load_source(rule, client=client, timeout=timeout)

    events = await with_default(
        load_rule,
        [],
        exceptions=SOURCE_ERRORS,
        timeout=timeout,
        on_error=record_failure,
    )
    duration_ms = int((datetime.now() - started).total_seconds() * 1000)

    if failures:
        logger.warning("source_fetch_failed", source=rule.name, url=rule.url, error=failures[0])
        return [], FetchStats(
            source=rule.name,
            count=0,
            status="error",
            duration_ms=duration_ms,
            error_message=failures[0],
        )

    return events, FetchStats(
        source=rule.name,
        count=len(events),
        status="success",
        duration_ms=duration_ms,
    )


async def aggregate(
    rules: list[SourceRule],
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
    monitor: Optional[HealthMonitor] = None,
) -> AggregateResult:
    """
    Fetch all sources concurrently and merge their events.

    Args:
        rules: Sources to load
        client: Shared HTTP client; one is created for the request when omitted
        timeout: Per-source bound in seconds
        monitor: Health monitor to report each source's outcome into

    Returns:
        AggregateResult with merged events (unordered) and per-source stats
    """
    if client is None:
        async with create_client(timeout=timeout) as own_client:
            return await aggregate(rules, client=own_client, timeout=timeout, monitor=monitor)

    results = await asyncio.gather(
        *(_collect_source(rule, client, timeout) for rule in rules)
    )

    all_events: list[Event] = []
    all_stats: list[FetchStats] = []
    failed: list[str] = []

    for events, stats in results:
        all_events.extend(events)
        all_stats.append(stats)
        if stats.status == "error":
            failed.append(stats.source)
        if monitor is not None:
            monitor.record(stats)

    logger.info(
        "aggregate_complete",
        sources=len(rules),
        failed=len(failed),
        events=len(all_events),
    )

    return AggregateResult(
        events=all_events,
        stats=all_stats,
        total=len(all_events),
        failed_sources=failed,
    )
