"""
Timeline Builder (categorical path)
===================================

Merges an entity's state changes with every period boundary into one
chronological event stream, then sweeps it to produce duration-accurate
state segments tagged with the active polarity.

Polarity membership is a set, not a count: any PeriodEnd of a polarity
clears it, so two overlapping TRUE periods collapse to a single "TRUE
active" flag. When TRUE and FALSE are both active the segment is tagged
TRUE.

This is deliberately NOT the per-period chunking used for numeric
entities (see discern.core.chunks); the two can place boundaries
differently for the same entity.
"""

import logging
from collections import Counter
from enum import IntEnum
from typing import Dict, List, NamedTuple, Optional, Sequence

from discern.core.chunks import MIN_CHUNK_MS
from discern.core.parsing import parse_number, parse_timestamp, timed_history
from discern.core.types import (
    HistoryEntry,
    LabeledPeriod,
    StateAnalysis,
    StateSegment,
)

logger = logging.getLogger(__name__)


class EventType(IntEnum):
    STATE_CHANGE = 0
    PERIOD_START = 1
    PERIOD_END = 2


class TimelineEvent(NamedTuple):
    time: int
    kind: EventType
    state: Optional[str] = None
    is_true_period: Optional[bool] = None
    period_key: Optional[str] = None


def period_key(start_ms: int, end_ms: int) -> str:
    """Boundary key identifying a period for occurrence counting."""
    return f"{start_ms}_{end_ms}"


def build_events(
    entity_history: Sequence[HistoryEntry],
    periods: Sequence[LabeledPeriod],
) -> List[TimelineEvent]:
    """
    State changes first, then period boundaries; stable sort by time.

    Inverted periods (end < start) are left out: their end would precede
    their start and leave the period open for the rest of the sweep.
    """
    events = [
        TimelineEvent(t, EventType.STATE_CHANGE, state=entry.state)
        for t, entry in timed_history(entity_history)
    ]
    for period in periods:
        start = parse_timestamp(period.start)
        end = parse_timestamp(period.end)
        if end < start:
            continue
        key = period_key(start, end)
        events.append(TimelineEvent(start, EventType.PERIOD_START,
                                    is_true_period=period.is_true_period, period_key=key))
        events.append(TimelineEvent(end, EventType.PERIOD_END,
                                    is_true_period=period.is_true_period, period_key=key))
    events.sort(key=lambda e: e.time)
    return events


def create_unified_timeline(
    entity_history: Sequence[HistoryEntry],
    periods: Sequence[LabeledPeriod],
) -> List[StateSegment]:
    """
    Sweep the merged event stream into segments.

    A segment [t_i, t_{i+1}) is emitted whenever a state is known and at
    least one polarity is active. Segments shorter than MIN_CHUNK_MS are
    dropped here, so they never reach occurrence counting.
    """
    events = build_events(entity_history, periods)

    segments: List[StateSegment] = []
    current_state: Optional[str] = None
    active_polarities = set()
    active_periods: Counter = Counter()

    for i, event in enumerate(events):
        if event.kind is EventType.STATE_CHANGE:
            current_state = event.state
        elif event.kind is EventType.PERIOD_START:
            active_polarities.add(event.is_true_period)
            active_periods[(event.period_key, event.is_true_period)] += 1
        else:
            active_polarities.discard(event.is_true_period)
            slot = (event.period_key, event.is_true_period)
            if active_periods[slot] > 0:
                active_periods[slot] -= 1

        if current_state is None or not active_polarities or i + 1 >= len(events):
            continue

        end = events[i + 1].time
        if end - event.time < MIN_CHUNK_MS:
            continue

        is_true = True in active_polarities
        keys = tuple(sorted(
            key for (key, polarity), count in active_periods.items()
            if polarity == is_true and count > 0
        ))
        segments.append(StateSegment(
            start=event.time,
            end=end,
            state=current_state,
            value=parse_number(current_state),
            is_true_period=is_true,
            period_keys=keys,
        ))

    logger.debug("Timeline: %d events -> %d segments", len(events), len(segments))
    return segments


def analyze_state_segments(segments: Sequence[StateSegment]) -> Dict[str, StateAnalysis]:
    """
    Count, per state, the distinct TRUE and FALSE periods it was seen in.

    States appear in first-seen order.
    """
    seen_true: Dict[str, set] = {}
    seen_false: Dict[str, set] = {}
    order: Dict[str, None] = {}

    for segment in segments:
        if segment.duration < MIN_CHUNK_MS:
            continue
        order.setdefault(segment.state)
        keys = segment.period_keys or (str(segment.start),)
        bucket = seen_true if segment.is_true_period else seen_false
        bucket.setdefault(segment.state, set()).update(keys)

    return {
        state: StateAnalysis(
            true_occurrences=len(seen_true.get(state, ())),
            false_occurrences=len(seen_false.get(state, ())),
        )
        for state in order
    }
