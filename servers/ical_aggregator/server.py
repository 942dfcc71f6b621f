"""
Core-facing request handling.

CalendarFeedServer exposes the two request paths:
- get_one: one caller-supplied feed with optional town/location overrides
- get_many: every configured source, fetched concurrently and merged

Both return a RenderedResponse (body, content type). Errors are raised as
FeedError subclasses; mapping them to protocol responses is the caller's job.
"""

import asyncio
from datetime import datetime
from typing import Any, Optional

import structlog

from .aggregator import aggregate
from .config.settings import load_config
from .dedup import deduplicate
from .models import OutputFormat, RenderedResponse, SourceRule
from .render import parse_format, render
from .resilience import HealthMonitor
from .sources.adapter import load_source, single_feed_rule
from .sources.fetcher import create_client
from .sources.registry import load_sources
from .sources.url_validator import request_guard, validate_feed_url

logger = structlog.get_logger()


class CalendarFeedServer:
    """Serve merged calendar feeds in csv, html or json."""

    def __init__(
        self,
        config: Optional[dict[str, Any]] = None,
        sources: Optional[list[SourceRule]] = None,
    ):
        self.config = config or load_config()
        self.sources = sources if sources is not None else load_sources(self.config.get("sources_file"))
        self.monitor = HealthMonitor()
        self.tools = {
            "get_one": self.get_one,
            "get_many": self.get_many,
            "list_sources": self.list_sources,
            "health": self.health,
        }

    @property
    def timeout(self) -> float:
        return self.config["fetch"]["timeout_seconds"]

    @property
    def default_format(self) -> OutputFormat:
        return OutputFormat(self.config["output"]["default_format"])

    def _client(self, request_guard=None):
        return create_client(
            timeout=self.timeout,
            user_agent=self.config["fetch"]["user_agent"],
            request_guard=request_guard,
        )

    def _render(self, events, fmt: OutputFormat, now: Optional[datetime]) -> RenderedResponse:
        output = self.config["output"]
        return render(
            events,
            fmt,
            now=now,
            window_days=output["html_window_days"],
            summary_max_length=output["summary_max_length"],
        )

    async def get_one(
        self,
        url: Optional[str],
        format: Optional[str] = None,
        town: Optional[str] = None,
        location: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RenderedResponse:
        """
        Fetch and render a single caller-supplied feed.

        Args:
            url: Feed URL (required)
            format: csv, html or json (configured default when omitted)
            town: Town appended to every location and used for the town column
            location: Location override applied to every event
            now: Current time for the HTML window

        Raises:
            ValidationError: If the URL or format is missing/invalid, or a
                redirect leads to a blocked host
            FetchError: If the feed cannot be retrieved
            ParseError: If the feed is not a calendar
        """
        fmt = parse_format(format, self.default_format)
        single = self.config["single_feed"]
        url = await asyncio.to_thread(
            validate_feed_url,
            url,
            require_https=single["require_https"],
            resolve_dns=single["resolve_dns"],
        )

        rule = single_feed_rule(url, town=town, location=location)
        guard = request_guard(
            require_https=single["require_https"],
            resolve_dns=single["resolve_dns"],
        )
        async with self._client(request_guard=guard) as client:
            events = await load_source(rule, client=client, timeout=self.timeout)

        logger.info("single_feed_loaded", url=url, events=len(events), format=fmt.value)
        return self._render(events, fmt, now)

    async def get_many(
        self,
        format: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RenderedResponse:
        """
        Fetch every configured source concurrently and render the merged list.

        Sources that fail contribute nothing; the request still succeeds.

        Raises:
            ValidationError: If the format is invalid
        """
        fmt = parse_format(format, self.default_format)

        async with self._client() as client:
            result = await aggregate(
                self.sources,
                client=client,
                timeout=self.timeout,
                monitor=self.monitor,
            )

        events = result.events
        dedup = self.config["deduplication"]
        if dedup["enabled"]:
            deduped = deduplicate(events, threshold=dedup["threshold"])
            if deduped.duplicates_removed:
                logger.info(
                    "duplicates_removed",
                    removed=deduped.duplicates_removed,
                    remaining=len(deduped.events),
                )
            events = deduped.events

        return self._render(events, fmt, now)

    async def list_sources(self) -> list[dict]:
        """Describe the configured sources."""
        return [rule.model_dump(mode="json") for rule in self.sources]

    async def health(self) -> dict:
        """Report per-source health from previous aggregate requests."""
        return self.monitor.get_status()
