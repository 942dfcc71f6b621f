"""
Calendar feed sources.

Each source is described by a SourceRule and driven by the generic adapter:
- fetch_feed(url) -> raw iCalendar text
- parse_feed(text) -> list[RawEvent]
- normalize_events(raw, rule) -> list[Event]
"""

from .adapter import load_source, normalize_events, resolve_location, single_feed_rule
from .fetcher import fetch_feed
from .ical_parser import parse_feed
from .registry import SOURCES, load_sources
from .url_validator import SSRFError, request_guard, validate_feed_url

__all__ = [
    "fetch_feed",
    "parse_feed",
    "normalize_events",
    "resolve_location",
    "load_source",
    "single_feed_rule",
    "SOURCES",
    "load_sources",
    "SSRFError",
    "validate_feed_url",
    "request_guard",
]
