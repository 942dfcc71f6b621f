"""Shared pytest fixtures for feed aggregator tests."""

from datetime import datetime
from typing import Callable

import httpx
import pytest

from servers.ical_aggregator.config.settings import get_default_config
from servers.ical_aggregator.models import Event, LocationStrategy, MatchMode, SourceRule


def make_vevent(
    summary: str,
    start: str,
    end: str | None = None,
    location: str | None = None,
    url: str | None = None,
    uid: str | None = None,
) -> str:
    """Build a VEVENT block. start/end use iCalendar notation, e.g. 20261020T090000."""
    lines = ["BEGIN:VEVENT", f"UID:{uid or summary.replace(' ', '-').lower()}@test"]
    if len(start) == 8:
        lines.append(f"DTSTART;VALUE=DATE:{start}")
    else:
        lines.append(f"DTSTART:{start}")
    if end:
        if len(end) == 8:
            lines.append(f"DTEND;VALUE=DATE:{end}")
        else:
            lines.append(f"DTEND:{end}")
    lines.append(f"SUMMARY:{summary}")
    if location:
        lines.append(f"LOCATION:{location}")
    if url:
        lines.append(f"URL:{url}")
    lines.append("END:VEVENT")
    return "\r\n".join(lines)


def make_calendar(*vevents: str) -> str:
    """Wrap VEVENT blocks in a VCALENDAR."""
    return "\r\n".join([
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//ical-aggregator tests//EN",
        *vevents,
        "END:VCALENDAR",
        "",
    ])


def mock_client(
    routes: dict[str, httpx.Response | Callable],
    request_guard: Callable | None = None,
) -> httpx.AsyncClient:
    """AsyncClient answering from a url -> response (or async handler) mapping.

    Redirects are followed like the real client; request_guard is installed
    as a request hook when given.
    """

    async def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return await route(request)
        return route

    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        follow_redirects=True,
        event_hooks={"request": [request_guard]} if request_guard else None,
    )


@pytest.fixture
def now() -> datetime:
    """Fixed 'current time' for renderers."""
    return datetime(2026, 10, 19, 8, 0)


@pytest.fixture
def config() -> dict:
    """Default config with DNS resolution disabled for offline tests."""
    config = get_default_config()
    config["single_feed"]["resolve_dns"] = False
    return config


@pytest.fixture
def scarborough_rule() -> SourceRule:
    return SourceRule(
        name="scarborough_land_trust",
        url="https://scarboroughlandtrust.org/events/?ical=1",
        town="Scarborough",
        strategy=LocationStrategy.FIRST_SEGMENT,
        sentinels=["ME"],
    )


@pytest.fixture
def freeport_rule() -> SourceRule:
    return SourceRule(
        name="freeport_library",
        url="https://freeportmaine.libcal.com/ical_subscribe.php?src=p&cid=12960",
        town="Freeport",
        strategy=LocationStrategy.CONSTANT,
        location="Library, Freeport",
        exclude=["FCL Closed", "Cancelled", "Canceled"],
        match=MatchMode.SUBSTRING,
    )


@pytest.fixture
def sample_events() -> list[Event]:
    """Events across a week, deliberately out of order."""
    return [
        Event(
            start=datetime(2026, 10, 21, 14, 30),
            end=datetime(2026, 10, 21, 15, 0),
            summary="Lego Club",
            location="Library, Freeport",
            town="Freeport",
            url="https://freeportmaine.libcal.com/event/1",
            source="freeport_library",
        ),
        Event(
            start=datetime(2026, 10, 19, 9, 0),
            summary="Bird Walk",
            location="Pleasant Hill Preserve, Scarborough",
            town="Scarborough",
            url="https://scarboroughlandtrust.org/events/bird-walk",
            source="scarborough_land_trust",
        ),
        Event(
            start=datetime(2026, 10, 20, 0, 0),
            end=datetime(2026, 10, 21, 0, 0),
            summary="Fall Ride",
            location="Belfast Common",
            source="bikemaine",
        ),
    ]
