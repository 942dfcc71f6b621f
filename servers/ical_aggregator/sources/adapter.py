"""
Generic source adapter.

A single adapter drives every feed: the per-source behaviour lives in a
SourceRule (fixed URL, fixed town, location strategy, exclusion markers)
rather than in per-source code.
"""

from typing import Optional

import httpx
import structlog

from ..models import (
    UNKNOWN_LOCATION,
    Event,
    LocationStrategy,
    MatchMode,
    RawEvent,
    SourceRule,
)
from .fetcher import DEFAULT_TIMEOUT, fetch_feed
from .ical_parser import parse_feed

logger = structlog.get_logger()


def is_excluded(summary: str, rule: SourceRule) -> bool:
    """Check whether a summary carries one of the rule's closed/cancelled markers."""
    if not rule.exclude:
        return False

    if rule.match == MatchMode.EXACT:
        return summary in rule.exclude

    summary_lower = summary.lower()
    return any(marker.lower() in summary_lower for marker in rule.exclude)


def _first_segment_location(location: Optional[str], rule: SourceRule) -> str:
    """Keep the text before the first comma and append the town."""
    town = rule.town or ""
    if location is None or location in rule.sentinels:
        return town or UNKNOWN_LOCATION

    segment = location.split(",")[0].strip()
    if not segment:
        return town or UNKNOWN_LOCATION
    return f"{segment}, {town}" if town else segment


def resolve_location(location: Optional[str], rule: SourceRule) -> str:
    """
    Apply the rule's location strategy to one event's location.

    Args:
        location: Location as supplied by the feed (None when absent)
        rule: Source rule

    Returns:
        Final, non-empty location string
    """
    if rule.strategy == LocationStrategy.CONSTANT:
        return rule.location or rule.town or UNKNOWN_LOCATION

    if rule.strategy == LocationStrategy.FIRST_SEGMENT:
        return _first_segment_location(location, rule)

    if rule.strategy == LocationStrategy.OVERRIDE:
        resolved = rule.location or location or UNKNOWN_LOCATION
        if rule.town:
            resolved += f", {rule.town}"
        return resolved

    return location or UNKNOWN_LOCATION


def normalize_events(raw_events: list[RawEvent], rule: SourceRule) -> list[Event]:
    """
    Turn parsed feed events into normalized events for one source.

    Excluded summaries are dropped before locations are rewritten.
    """
    events = []
    excluded = 0

    for raw in raw_events:
        if is_excluded(raw.summary, rule):
            excluded += 1
            continue

        events.append(Event(
            start=raw.start,
            end=raw.end,
            summary=raw.summary,
            location=resolve_location(raw.location, rule),
            town=rule.town,
            url=raw.url,
            source=rule.name,
        ))

    if excluded:
        logger.debug("source_events_excluded", source=rule.name, excluded=excluded)

    return events


async def load_source(
    rule: SourceRule,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[Event]:
    """
    Fetch, parse and normalize one source.

    Raises:
        FetchError: If the feed cannot be retrieved
        ParseError: If the feed is not a calendar
    """
    text = await fetch_feed(rule.url, client=client, timeout=timeout)
    raw_events = parse_feed(text, url=rule.url)
    return normalize_events(raw_events, rule)


def single_feed_rule(
    url: str,
    town: Optional[str] = None,
    location: Optional[str] = None,
) -> SourceRule:
    """Build an ad hoc rule from caller-supplied parameters."""
    return SourceRule(
        name=url,
        url=url,
        town=town or None,
        strategy=LocationStrategy.OVERRIDE,
        location=location or None,
    )
