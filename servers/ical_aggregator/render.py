"""
Renderers for merged event lists.

- CSV: one quoted line per event, sorted by start
- HTML: the coming week grouped by day, with a client-side town filter
- JSON: every event as-is plus its pretty time range
"""

import json
import os
from datetime import datetime, timedelta
from itertools import groupby
from typing import Optional

from .errors import ValidationError
from .models import CONTENT_TYPES, UNKNOWN_TOWN, Event, OutputFormat, RenderedResponse
from .template_engine import SUMMARY_MAX_LENGTH, TemplateEngine, day_heading
from .time_range import format_time_range


HTML_WINDOW_DAYS = 7
HTML_TEMPLATE = "events.html"


def parse_format(value: Optional[str], default: OutputFormat = OutputFormat.CSV) -> OutputFormat:
    """
    Resolve a caller-supplied format selector.

    Raises:
        ValidationError: If the value is not csv, html or json
    """
    if value is None or not value.strip():
        return default
    try:
        return OutputFormat(value.strip().lower())
    except ValueError:
        allowed = ", ".join(f.value for f in OutputFormat)
        raise ValidationError(f"Unknown format '{value}' (expected one of: {allowed})") from None


def _wall_clock(value: datetime) -> datetime:
    """Compare timestamps by their local wall-clock value, ignoring tzinfo."""
    return value.replace(tzinfo=None)


def sort_events(events: list[Event]) -> list[Event]:
    """Sort events by start time (stable for equal starts)."""
    return sorted(events, key=lambda e: _wall_clock(e.start))


def escape_csv(text: Optional[str]) -> str:
    """Quote a field, doubling any embedded double quotes."""
    return '"' + (text or "").replace('"', '""') + '"'


def render_csv(events: list[Event]) -> str:
    """
    Render events as CSV lines.

    Column order: date (MM-DD-YYYY), summary, time range, location, town, url.
    Free-text columns are always quoted.
    """
    lines = []
    for e in sort_events(events):
        lines.append(",".join([
            e.start.strftime("%m-%d-%Y"),
            escape_csv(e.summary),
            format_time_range(e.start, e.end),
            escape_csv(e.location),
            escape_csv(e.town or UNKNOWN_TOWN),
            escape_csv(e.url),
        ]))
    return "".join(line + os.linesep for line in lines)


def render_json(events: list[Event]) -> str:
    """Render events field-for-field with a derived pretty_time_range."""
    payload = []
    for e in events:
        item = e.model_dump(mode="json")
        item["pretty_time_range"] = format_time_range(e.start, e.end)
        payload.append(item)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_html(
    events: list[Event],
    now: datetime,
    window_days: int = HTML_WINDOW_DAYS,
    summary_max_length: int = SUMMARY_MAX_LENGTH,
    engine: Optional[TemplateEngine] = None,
) -> str:
    """
    Render the coming week's events as an HTML page.

    Args:
        events: Events to render
        now: Current time; the window starts on now's date
        window_days: Days to include, starting today
        summary_max_length: Summaries longer than this are elided
        engine: Template engine (package templates by default)

    Returns:
        HTML document
    """
    today = now.date()
    end_day = today + timedelta(days=window_days)

    upcoming = [e for e in sort_events(events) if today <= e.start.date() < end_day]
    days = [(day, list(day_events)) for day, day_events in groupby(upcoming, key=lambda e: e.start.date())]
    towns = sorted({e.town or UNKNOWN_TOWN for e in upcoming}, key=str.lower)

    engine = engine or TemplateEngine()
    return engine.render(HTML_TEMPLATE, {
        "title": f"Events {day_heading(today)} - {day_heading(end_day - timedelta(days=1))}",
        "days": days,
        "towns": towns,
        "summary_max_length": summary_max_length,
    })


def render(
    events: list[Event],
    fmt: OutputFormat,
    now: Optional[datetime] = None,
    window_days: int = HTML_WINDOW_DAYS,
    summary_max_length: int = SUMMARY_MAX_LENGTH,
) -> RenderedResponse:
    """
    Render events in the requested format.

    Args:
        events: Events to render
        fmt: Output format
        now: Current time for the HTML window (defaults to the wall clock)
        window_days: HTML window length in days
        summary_max_length: HTML summary elision length

    Returns:
        RenderedResponse with body and content type
    """
    if fmt == OutputFormat.CSV:
        body = render_csv(events)
    elif fmt == OutputFormat.HTML:
        body = render_html(
            events,
            now or datetime.now(),
            window_days=window_days,
            summary_max_length=summary_max_length,
        )
    else:
        body = render_json(events)

    return RenderedResponse(body=body, content_type=CONTENT_TYPES[fmt])
