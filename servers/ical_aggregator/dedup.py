"""
Noise de-duplication for merged feed events.

Feeds repeat entries (month views overlapping, the same event posted by
two organizations). Two events are treated as the same listing when:
- They start at the same moment
- They belong to the same town
- Their summaries match at or above THRESHOLD (token sort ratio)
- Their locations are at least LOCATION_THRESHOLD similar
"""

import re
from typing import Optional

from rapidfuzz import fuzz

from .models import DedupeResult, DuplicateMatch, Event


# Summary similarity threshold for duplicate detection
THRESHOLD = 0.9

# Location similarity required alongside a summary match
LOCATION_THRESHOLD = 0.6


def normalize_text(text: Optional[str]) -> str:
    """Normalize text for comparison."""
    if not text:
        return ""

    text = text.lower().strip()
    text = re.sub(r"[^\w\s]", " ", text)
    text = re.sub(r"\s+", " ", text)

    return text.strip()


def calculate_summary_similarity(e1: Event, e2: Event) -> float:
    """Calculate summary similarity (0-1)."""
    s1 = normalize_text(e1.summary)
    s2 = normalize_text(e2.summary)

    if not s1 or not s2:
        return 0.0

    # Use token_sort_ratio for word order independence
    return fuzz.token_sort_ratio(s1, s2) / 100


def calculate_location_similarity(e1: Event, e2: Event) -> float:
    """Calculate location similarity (0-1)."""
    l1 = normalize_text(e1.location)
    l2 = normalize_text(e2.location)

    if l1 == l2:
        return 1.0

    return fuzz.token_set_ratio(l1, l2) / 100


def is_candidate(e1: Event, e2: Event) -> bool:
    """Only events at the same start in the same town can be duplicates."""
    return e1.start == e2.start and (e1.town or "").lower() == (e2.town or "").lower()


def choose_primary_event(e1: Event, e2: Event) -> tuple[Event, Event]:
    """
    Choose which event to keep.

    Prefers the event with a link back to its source, then the one with an
    end time, then the first seen.

    Returns: (primary_event, secondary_event)
    """
    def completeness_score(e: Event) -> int:
        score = 0
        if e.url:
            score += 2
        if e.end:
            score += 1
        return score

    if completeness_score(e2) > completeness_score(e1):
        return (e2, e1)
    return (e1, e2)


def deduplicate(
    events: list[Event],
    threshold: float = THRESHOLD,
    location_threshold: float = LOCATION_THRESHOLD,
) -> DedupeResult:
    """
    Remove repeated listings from a list of events.

    Args:
        events: Events to deduplicate (order is preserved for survivors)
        threshold: Summary similarity threshold (0-1)
        location_threshold: Location similarity threshold (0-1)

    Returns:
        DedupeResult with surviving events and audit trail
    """
    if not events:
        return DedupeResult(events=[], original_count=0, duplicates_removed=0)

    result_events: list[Event] = []
    audit_trail: list[DuplicateMatch] = []

    for event in events:
        match_index = None
        summary_sim = location_sim = 0.0

        for i, kept in enumerate(result_events):
            if not is_candidate(kept, event):
                continue
            summary_sim = calculate_summary_similarity(kept, event)
            location_sim = calculate_location_similarity(kept, event)
            if summary_sim >= threshold and location_sim >= location_threshold:
                match_index = i
                break

        if match_index is None:
            result_events.append(event)
            continue

        primary, secondary = choose_primary_event(result_events[match_index], event)
        result_events[match_index] = primary
        audit_trail.append(DuplicateMatch(
            kept_event_id=primary.unique_key,
            merged_event_id=secondary.unique_key,
            summary_similarity=summary_sim,
            location_similarity=location_sim,
            reason=f"Dropped '{secondary.summary}' ({secondary.source}) as repeat of '{primary.summary}' ({primary.source})",
        ))

    return DedupeResult(
        events=result_events,
        original_count=len(events),
        duplicates_removed=len(events) - len(result_events),
        audit_trail=audit_trail,
    )
