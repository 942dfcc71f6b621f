"""Human-readable start/end time ranges ("9 AM", "2:30-3 PM", "all day")."""

from datetime import datetime
from typing import Optional


ALL_DAY = "all day"

# Whole-day spans as they come out of the formatter
ALL_DAY_PATTERNS = {"12 AM-11:59 PM", "12-12 AM"}


def _clock(value: datetime) -> str:
    """Format a time as 12-hour "h" or "h:mm"."""
    hour = value.hour % 12 or 12
    if value.minute == 0:
        return str(hour)
    return f"{hour}:{value.minute:02d}"


def _meridiem(value: datetime) -> str:
    return "AM" if value.hour < 12 else "PM"


def format_time_range(start: datetime, end: Optional[datetime] = None) -> str:
    """
    Format an event's time span.

    The start's AM/PM marker is omitted when the end falls in the same half
    of the day. Spans covering a whole day collapse to "all day".

    Args:
        start: Event start
        end: Event end, or None for point-in-time events

    Returns:
        Formatted range, e.g. "9 AM", "2:30-3 PM", "11 AM-1 PM"
    """
    result = _clock(start)

    if end is None or _meridiem(end) != _meridiem(start):
        result += f" {_meridiem(start)}"

    if end is not None:
        result += f"-{_clock(end)} {_meridiem(end)}"

    if result in ALL_DAY_PATTERNS:
        return ALL_DAY

    return result
