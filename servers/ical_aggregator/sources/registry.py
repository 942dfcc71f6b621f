"""
Built-in calendar feeds and their normalization rules.

Adding a source is a data change: append a SourceRule here, or list it in
a JSON sources file passed to load_sources().
"""

import json
from pathlib import Path
from typing import Optional

import structlog

from ..models import LocationStrategy, MatchMode, SourceRule

logger = structlog.get_logger()


SOURCES: list[SourceRule] = [
    # Feed rarely carries a location
    SourceRule(
        name="congress_square_park",
        url="https://congresssquarepark.org/events/?ical=1",
        town="Portland",
        strategy=LocationStrategy.CONSTANT,
        location="Congress Square Park, Portland",
    ),
    # Location is sometimes just "ME" or missing
    SourceRule(
        name="scarborough_land_trust",
        url="https://scarboroughlandtrust.org/events/?ical=1",
        town="Scarborough",
        strategy=LocationStrategy.FIRST_SEGMENT,
        sentinels=["ME"],
    ),
    # Full street addresses
    SourceRule(
        name="downtown_westbrook",
        url="https://www.downtownwestbrook.com/calendars/list/?ical=1",
        town="Westbrook",
        strategy=LocationStrategy.FIRST_SEGMENT,
    ),
    # Statewide rides, locations vary
    SourceRule(
        name="bikemaine",
        url="https://www.bikemaine.org/events/month/?ical=1",
        strategy=LocationStrategy.PASSTHROUGH,
    ),
    # Location is the room name; closures are published as events
    SourceRule(
        name="freeport_library",
        url="https://freeportmaine.libcal.com/ical_subscribe.php?src=p&cid=12960",
        town="Freeport",
        strategy=LocationStrategy.CONSTANT,
        location="Library, Freeport",
        exclude=["FCL Closed", "Cancelled", "Canceled"],
        match=MatchMode.SUBSTRING,
    ),
]


def load_sources(path: Optional[str | Path] = None) -> list[SourceRule]:
    """
    Load source rules from a JSON file, or return the built-in table.

    The file holds a list of objects with SourceRule fields, e.g.
    {"name": "...", "url": "...", "town": "...", "strategy": "first_segment"}.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If an entry is not a valid rule
    """
    if path is None:
        return list(SOURCES)

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    rules = [SourceRule(**entry) for entry in data]
    logger.info("sources_loaded", path=str(path), count=len(rules))
    return rules
