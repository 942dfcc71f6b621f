"""
iCalendar feed parsing.

Wraps the icalendar library and turns each VEVENT into a RawEvent.
Timestamps keep whatever time zone the feed encodes; DATE values
(all-day events) become midnight datetimes.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import structlog
from icalendar import Calendar

from ..errors import ParseError
from ..models import RawEvent

logger = structlog.get_logger()


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _text(component, name: str) -> Optional[str]:
    """Read a text property, treating blank values as absent."""
    value = component.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _event_end(component, start_value: date | datetime) -> Optional[datetime]:
    """Resolve DTEND, falling back to DURATION, then the all-day default."""
    dtend = component.get("dtend")
    if dtend is not None:
        return _as_datetime(dtend.dt)

    duration = component.get("duration")
    if duration is not None:
        return _as_datetime(start_value) + duration.dt

    # A DATE start with no end spans exactly one day
    if not isinstance(start_value, datetime):
        return _as_datetime(start_value) + timedelta(days=1)

    return None


def parse_feed(text: str, url: str = "<feed>") -> list[RawEvent]:
    """
    Parse an iCalendar document into raw events.

    Args:
        text: Raw feed body
        url: Feed URL, used in error messages

    Returns:
        List of RawEvent in feed order

    Raises:
        ParseError: If the body is empty or not a VCALENDAR
    """
    if not text or not text.strip():
        raise ParseError(url, "empty feed body")

    try:
        calendar = Calendar.from_ical(text)
    except (ValueError, IndexError, KeyError) as e:
        raise ParseError(url, str(e)) from e

    if calendar.name != "VCALENDAR":
        raise ParseError(url, f"expected VCALENDAR, got {calendar.name}")

    events: list[RawEvent] = []
    skipped = 0

    for component in calendar.walk("VEVENT"):
        dtstart = component.get("dtstart")
        if dtstart is None:
            skipped += 1
            continue

        try:
            start_value = dtstart.dt
            events.append(RawEvent(
                start=_as_datetime(start_value),
                end=_event_end(component, start_value),
                summary=_text(component, "summary") or "",
                location=_text(component, "location"),
                url=_text(component, "url"),
                uid=_text(component, "uid"),
            ))
        except (ValueError, TypeError, AttributeError):
            # Skip malformed events
            skipped += 1

    if skipped:
        logger.debug("feed_events_skipped", url=url, skipped=skipped)

    return events
