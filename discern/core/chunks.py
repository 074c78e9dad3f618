"""
Chunk Extraction & Duration Aggregator
======================================

Splits every period independently into value-homogeneous chunks:

    1. Value at period start = last observation at or before the start
       (none -> no chunk until the first in-period observation).
    2. Observations strictly inside (start, end) are change points; at a
       shared timestamp the last entry in input order wins.
    3. Chunks shorter than MIN_CHUNK_MS are discarded as noise.

Overlapping periods are each chunked in full. Used for numeric
threshold analysis.
"""

import logging
from typing import Callable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, TypeVar

import numpy as np

from discern.core.parsing import parse_number, parse_timestamp, timed_history, timestamps_array
from discern.core.types import (
    HistoryEntry,
    LabeledPeriod,
    NumericStats,
    SensorChunk,
    Threshold,
    ValueDuration,
)

logger = logging.getLogger(__name__)

# Fixed noise floor, not configurable
MIN_CHUNK_MS = 1000

V = TypeVar('V')


class DurationTotals(NamedTuple):
    true_matching: int
    true_total: int
    false_matching: int
    false_total: int

    @property
    def prob_given_true(self) -> float:
        return self.true_matching / self.true_total if self.true_total > 0 else 0.0

    @property
    def prob_given_false(self) -> float:
        return self.false_matching / self.false_total if self.false_total > 0 else 0.0


def _walk_period(
    timed: Sequence[Tuple[int, HistoryEntry]],
    times: np.ndarray,
    start: int,
    end: int,
    value_of: Callable[[HistoryEntry], Optional[V]],
) -> Iterator[Tuple[V, int]]:
    """Yield (value, duration) for each kept chunk of [start, end)."""
    first_inside = int(np.searchsorted(times, start, side='right'))
    first_after = int(np.searchsorted(times, end, side='left'))

    current: Optional[V] = None
    if first_inside > 0:
        current = value_of(timed[first_inside - 1][1])

    cursor = start
    i = first_inside
    while cursor < end:
        point = int(times[i]) if i < first_after else end
        duration = point - cursor
        if current is not None and duration >= MIN_CHUNK_MS:
            yield current, duration

        # Apply every change at this point; unparsable values keep the prior one
        while i < first_after and times[i] == point:
            value = value_of(timed[i][1])
            if value is not None:
                current = value
            i += 1
        cursor = point


def _period_chunks(
    entity_history: Sequence[HistoryEntry],
    periods: Sequence[LabeledPeriod],
    value_of: Callable[[HistoryEntry], Optional[V]],
) -> Iterator[Tuple[V, int, bool]]:
    if not entity_history or not periods:
        return
    timed = timed_history(entity_history)
    times = timestamps_array(timed)
    for period in periods:
        start = parse_timestamp(period.start)
        end = parse_timestamp(period.end)
        for value, duration in _walk_period(timed, times, start, end, value_of):
            yield value, duration, period.is_true_period


def create_sensor_period_chunks(
    entity_history: Sequence[HistoryEntry],
    periods: Sequence[LabeledPeriod],
) -> List[SensorChunk]:
    return [
        SensorChunk(value=value, duration=duration, is_true_period=polarity)
        for value, duration, polarity in _period_chunks(
            entity_history, periods, lambda entry: parse_number(entry.state)
        )
    ]


def analyze_numeric_states(
    entity_history: Sequence[HistoryEntry],
    periods: Sequence[LabeledPeriod],
) -> Optional[NumericStats]:
    """
    Collect duration-weighted numeric chunks per polarity.

    Returns:
        NumericStats, or None when no chunk survives filtering
    """
    chunks = create_sensor_period_chunks(entity_history, periods)
    if not chunks:
        logger.debug("No numeric chunks >= %d ms across %d periods", MIN_CHUNK_MS, len(periods))
        return None

    values = np.array([c.value for c in chunks], dtype=float)
    return NumericStats(
        is_numeric=True,
        min=float(values.min()),
        max=float(values.max()),
        true_chunks=[ValueDuration(c.value, c.duration) for c in chunks if c.is_true_period],
        false_chunks=[ValueDuration(c.value, c.duration) for c in chunks if not c.is_true_period],
    )


def total_duration(chunks: Sequence[ValueDuration]) -> int:
    return int(sum(c.duration for c in chunks))


def matching_duration(chunks: Sequence[ValueDuration], threshold: Threshold) -> int:
    return int(sum(c.duration for c in chunks if threshold.matches(c.value)))


def threshold_durations(stats: NumericStats, threshold: Threshold) -> DurationTotals:
    """Matching vs. total duration per polarity for one threshold."""
    return DurationTotals(
        true_matching=matching_duration(stats.true_chunks, threshold),
        true_total=total_duration(stats.true_chunks),
        false_matching=matching_duration(stats.false_chunks, threshold),
        false_total=total_duration(stats.false_chunks),
    )
