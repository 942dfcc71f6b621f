"""Tests for event data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from servers.ical_aggregator.models import (
    Event,
    LocationStrategy,
    MatchMode,
    OutputFormat,
    SourceRule,
)


class TestEvent:
    """Tests for Event model."""

    def test_event_creation(self):
        event = Event(
            start=datetime(2026, 10, 20, 9, 0),
            summary="Bird Walk",
            location="Scarborough",
        )
        assert event.end is None
        assert event.town is None
        assert event.url is None

    def test_empty_location_rejected(self):
        with pytest.raises(ValidationError):
            Event(start=datetime(2026, 10, 20, 9, 0), summary="Bird Walk", location="")

    def test_unique_key_is_stable(self):
        e1 = Event(start=datetime(2026, 10, 20, 9, 0), summary="Bird Walk ", location="Scarborough")
        e2 = Event(start=datetime(2026, 10, 20, 9, 0), summary="bird walk", location="SCARBOROUGH")
        assert e1.unique_key == e2.unique_key

    def test_unique_key_not_serialized(self):
        event = Event(start=datetime(2026, 10, 20, 9, 0), summary="Bird Walk", location="Scarborough")
        assert "unique_key" not in event.model_dump()


class TestSourceRule:
    """Tests for SourceRule model."""

    def test_defaults(self):
        rule = SourceRule(name="bikemaine", url="https://www.bikemaine.org/events/month/?ical=1")
        assert rule.strategy == LocationStrategy.PASSTHROUGH
        assert rule.match == MatchMode.SUBSTRING
        assert rule.exclude == []
        assert rule.sentinels == []

    def test_strategy_from_string(self):
        rule = SourceRule(name="x", url="https://example.org/ical", strategy="first_segment")
        assert rule.strategy == LocationStrategy.FIRST_SEGMENT

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValidationError):
            SourceRule(name="x", url="https://example.org/ical", strategy="geocode")


def test_output_format_values():
    assert {f.value for f in OutputFormat} == {"csv", "html", "json"}
