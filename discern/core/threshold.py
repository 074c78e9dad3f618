"""
Threshold Optimizer
===================

Finds the numeric split that best separates TRUE-period durations from
FALSE-period durations.

Candidates (deduplicated, ascending):
    - every observed chunk value (both polarities)
    - midpoints between adjacent distinct values
    - 21 evenly spaced points across [min, max]

Evaluation order is fixed: all "above-only", then all "below-only",
then at most `max_range_tests` strided (above, below) pairs. Only a
strictly greater score replaces the incumbent, so ties keep the earliest
candidate.

Score = |P(match | TRUE) - P(match | FALSE)|, both duration-weighted.
Chunks are sorted by value once; each candidate locates its bounds with
a binary search (np.searchsorted) and reads matching duration from a
prefix sum.

The score surface has multiple peaks, hence exhaustive candidate scans
rather than ternary search.
"""

from typing import Optional, Sequence

import numpy as np

from discern.core.types import NumericStats, Threshold, ValueDuration

EVEN_SPACED_POINTS = 21
MAX_RANGE_TESTS = 100
FINGERPRINT_CHUNKS = 5


def value_matches_thresholds(value: float, thresholds: Threshold) -> bool:
    return thresholds.matches(value)


def format_threshold_description(thresholds: Threshold) -> str:
    return thresholds.describe()


class SortedChunks:
    """Chunk values sorted ascending with a duration prefix sum."""

    def __init__(self, chunks: Sequence[ValueDuration]):
        values = np.array([c.value for c in chunks], dtype=float)
        durations = np.array([c.duration for c in chunks], dtype=np.int64)
        order = np.argsort(values, kind='stable')
        self.values = values[order]
        self.cumulative = np.concatenate(([0], np.cumsum(durations[order])))

    def __len__(self) -> int:
        return len(self.values)

    @property
    def total_duration(self) -> int:
        return int(self.cumulative[-1])

    def first_above(self, threshold: float) -> int:
        """First index whose value is > threshold."""
        return int(np.searchsorted(self.values, threshold, side='right'))

    def matching_duration(self, above: Optional[float], below: Optional[float]) -> int:
        start = self.first_above(above) if above is not None else 0
        # First index > below doubles as the exclusive upper bound of value <= below
        end = self.first_above(below) if below is not None else len(self.values)
        if end <= start:
            return 0
        return int(self.cumulative[end] - self.cumulative[start])

    def match_fraction(self, above: Optional[float], below: Optional[float]) -> float:
        total = self.total_duration
        if total <= 0:
            return 0.0
        return self.matching_duration(above, below) / total


def calculate_threshold_score(
    true_chunks: SortedChunks,
    false_chunks: SortedChunks,
    above: Optional[float],
    below: Optional[float],
) -> float:
    if above is None and below is None:
        return 0.0
    true_pct = true_chunks.match_fraction(above, below)
    false_pct = false_chunks.match_fraction(above, below)
    return abs(true_pct - false_pct)


def generate_candidates(stats: NumericStats, even_points: int = EVEN_SPACED_POINTS) -> np.ndarray:
    """Observed values, adjacent midpoints and an even grid, unique and sorted."""
    observed = np.array(
        [c.value for c in stats.true_chunks] + [c.value for c in stats.false_chunks],
        dtype=float,
    )
    distinct = np.unique(observed)
    midpoints = (distinct[:-1] + distinct[1:]) / 2.0

    lo = stats.min if stats.min is not None else 0.0
    hi = stats.max if stats.max is not None else 100.0
    intervals = max(even_points - 1, 1)
    step = (hi - lo) / intervals
    grid = lo + step * np.arange(intervals + 1, dtype=float)

    return np.unique(np.concatenate((distinct, midpoints, grid)))


def find_optimal_thresholds(
    stats: NumericStats,
    max_range_tests: int = MAX_RANGE_TESTS,
    even_points: int = EVEN_SPACED_POINTS,
) -> Threshold:
    """
    Search for the most discriminating threshold.

    Returns:
        Threshold(None, None) when either polarity has no chunks
    """
    if not stats.is_numeric or not stats.true_chunks or not stats.false_chunks:
        return Threshold()

    true_sorted = SortedChunks(stats.true_chunks)
    false_sorted = SortedChunks(stats.false_chunks)
    candidates = [float(c) for c in generate_candidates(stats, even_points)]

    best_score = -1.0
    best = Threshold()

    for threshold in candidates:
        score = calculate_threshold_score(true_sorted, false_sorted, threshold, None)
        if score > best_score:
            best_score, best = score, Threshold(above=threshold)

    for threshold in candidates:
        score = calculate_threshold_score(true_sorted, false_sorted, None, threshold)
        if score > best_score:
            best_score, best = score, Threshold(below=threshold)

    n = len(candidates)
    stride = max((n * n) // max_range_tests, 1) if max_range_tests > 0 else 1
    tests = 0
    for i in range(n - 1):
        if tests >= max_range_tests:
            break
        for j in range(i + 1, n, stride):
            above, below = candidates[i], candidates[j]
            score = calculate_threshold_score(true_sorted, false_sorted, above, below)
            if score > best_score:
                best_score, best = score, Threshold(above=above, below=below)
            tests += 1
            if tests >= max_range_tests:
                break

    return best


def get_cache_key(stats: NumericStats, n_chunks: int = FINGERPRINT_CHUNKS) -> str:
    """Fingerprint from the first few (value, duration) pairs per polarity."""
    true_key = ",".join(f"{c.value:.2f}-{c.duration}" for c in stats.true_chunks[:n_chunks])
    false_key = ",".join(f"{c.value:.2f}-{c.duration}" for c in stats.false_chunks[:n_chunks])
    return f"{true_key}|{false_key}"
