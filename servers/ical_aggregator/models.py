"""
Pydantic models for feed and event data structures.

These models define the core data types used throughout the server:
- RawEvent: What the calendar parser yields for one VEVENT
- Event: A normalized event ready for rendering
- SourceRule: Per-feed normalization rules consumed by the generic adapter
- FetchStats / AggregateResult: Outcome of one aggregate request
- DedupeResult: Result of noise de-duplication with audit trail
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


UNKNOWN_LOCATION = "unknown location"
UNKNOWN_TOWN = "unknown town"


class OutputFormat(str, Enum):
    """Output formats the renderer can produce."""

    CSV = "csv"
    HTML = "html"
    JSON = "json"


CONTENT_TYPES = {
    OutputFormat.CSV: "text/plain; charset=utf-8",
    OutputFormat.HTML: "text/html; charset=utf-8",
    OutputFormat.JSON: "application/json",
}


class LocationStrategy(str, Enum):
    """How a source's location field is rewritten."""

    CONSTANT = "constant"  # Always the rule's fixed location
    FIRST_SEGMENT = "first_segment"  # Text before the first comma + town
    PASSTHROUGH = "passthrough"  # Whatever the feed supplies
    OVERRIDE = "override"  # Caller-supplied override, then town suffix


class MatchMode(str, Enum):
    """How exclusion markers are compared against an event summary."""

    EXACT = "exact"
    SUBSTRING = "substring"


class RawEvent(BaseModel):
    """A VEVENT as produced by the calendar parser."""

    start: datetime
    end: Optional[datetime] = None
    summary: str = ""
    location: Optional[str] = None
    url: Optional[str] = None
    uid: Optional[str] = None


class Event(BaseModel):
    """Represents a single normalized event."""

    start: datetime
    end: Optional[datetime] = None
    summary: str
    location: str = Field(min_length=1)
    town: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None

    @property
    def unique_key(self) -> str:
        """Key identifying this event within a single request."""
        return f"{self.summary.lower().strip()}|{self.start.isoformat()}|{self.location.lower()}"


class SourceRule(BaseModel):
    """Declarative normalization rules for one calendar feed."""

    name: str
    url: str
    town: Optional[str] = None
    strategy: LocationStrategy = LocationStrategy.PASSTHROUGH
    location: Optional[str] = None  # Constant location, or caller override
    sentinels: list[str] = Field(default_factory=list)  # Locations treated as absent
    exclude: list[str] = Field(default_factory=list)  # Summary markers to drop
    match: MatchMode = MatchMode.SUBSTRING


class FetchStats(BaseModel):
    """Statistics from fetching one source."""

    source: str
    count: int
    status: str  # success, error
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None


class AggregateResult(BaseModel):
    """Result of fetching events from all sources."""

    events: list[Event]
    stats: list[FetchStats]
    total: int
    failed_sources: list[str] = Field(default_factory=list)


class DuplicateMatch(BaseModel):
    """Records a duplicate match for audit trail."""

    kept_event_id: str
    merged_event_id: str
    summary_similarity: float
    location_similarity: float
    reason: str


class DedupeResult(BaseModel):
    """Result of deduplication with audit trail."""

    events: list[Event]
    original_count: int
    duplicates_removed: int
    audit_trail: list[DuplicateMatch] = Field(default_factory=list)


class RenderedResponse(BaseModel):
    """Rendered body plus the content type the transport should send."""

    body: str
    content_type: str
