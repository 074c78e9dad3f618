"""
Tests for the threshold optimizer.
"""

import numpy as np
import pytest

import discern.core.threshold as threshold_module
from discern.core.threshold import (
    SortedChunks,
    calculate_threshold_score,
    find_optimal_thresholds,
    format_threshold_description,
    generate_candidates,
    get_cache_key,
    value_matches_thresholds,
)
from discern.core.types import NumericStats, Threshold, ValueDuration


def _stats(true_pairs, false_pairs):
    values = [v for v, _ in true_pairs] + [v for v, _ in false_pairs]
    return NumericStats(
        is_numeric=True,
        min=min(values) if values else None,
        max=max(values) if values else None,
        true_chunks=[ValueDuration(v, d) for v, d in true_pairs],
        false_chunks=[ValueDuration(v, d) for v, d in false_pairs],
    )


def _score(stats, threshold):
    return calculate_threshold_score(
        SortedChunks(stats.true_chunks),
        SortedChunks(stats.false_chunks),
        threshold.above,
        threshold.below,
    )


class TestValueMatches:
    """Half-open interval above < v <= below."""

    def test_range(self):
        t = Threshold(above=10.0, below=20.0)
        assert not value_matches_thresholds(10.0, t)
        assert value_matches_thresholds(10.5, t)
        assert value_matches_thresholds(20.0, t)
        assert not value_matches_thresholds(20.5, t)

    def test_single_sided(self):
        assert value_matches_thresholds(1e9, Threshold(above=5.0))
        assert not value_matches_thresholds(5.0, Threshold(above=5.0))
        assert value_matches_thresholds(-1e9, Threshold(below=5.0))
        assert value_matches_thresholds(5.0, Threshold(below=5.0))

    def test_empty_matches_nothing(self):
        assert not value_matches_thresholds(0.0, Threshold())
        assert not value_matches_thresholds(42.0, Threshold())

    def test_descriptions(self):
        assert format_threshold_description(Threshold(above=1.0, below=2.5)) == "1.00 < value <= 2.50"
        assert format_threshold_description(Threshold(above=50.0)) == "> 50.00"
        assert format_threshold_description(Threshold(below=3.14159)) == "<= 3.14"
        assert format_threshold_description(Threshold()) == "numeric"


class TestCandidates:

    def test_values_midpoints_and_grid(self):
        stats = _stats([(10.0, 1000)], [(90.0, 1000)])
        candidates = generate_candidates(stats)

        assert candidates[0] == 10.0
        assert candidates[-1] == 90.0
        assert 50.0 in candidates
        assert len(candidates) == 21  # grid step 4 already contains 10, 50, 90
        assert np.all(np.diff(candidates) > 0)

    def test_constant_values(self):
        stats = _stats([(5.0, 1000)], [(5.0, 1000)])
        assert list(generate_candidates(stats)) == [5.0]


class TestFindOptimalThresholds:

    def test_two_level_separation(self):
        stats = _stats([(10.0, 1000)], [(90.0, 1000)])
        result = find_optimal_thresholds(stats)

        # First perfect split in evaluation order is above-only at 10
        assert result == Threshold(above=10.0, below=None)
        assert result.matches(90.0) and not result.matches(10.0)
        assert _score(stats, result) == 1.0

    def test_missing_polarity_returns_empty(self):
        assert find_optimal_thresholds(_stats([(1.0, 1000)], [])) == Threshold()
        assert find_optimal_thresholds(_stats([], [(1.0, 1000)])) == Threshold()

    def test_not_numeric_returns_empty(self):
        stats = _stats([(1.0, 1000)], [(2.0, 1000)])
        stats.is_numeric = False
        assert find_optimal_thresholds(stats) == Threshold()

    def test_range_found_for_middle_band(self):
        stats = _stats([(50.0, 1000)], [(10.0, 1000), (90.0, 1000)])
        result = find_optimal_thresholds(stats)

        assert result.above is not None and result.below is not None
        assert result.matches(50.0)
        assert not result.matches(10.0) and not result.matches(90.0)
        assert _score(stats, result) == 1.0

    def test_duration_weighting(self):
        # TRUE time is mostly high; a short high FALSE chunk barely matters
        stats = _stats(
            [(80.0, 9000), (20.0, 1000)],
            [(20.0, 9000), (80.0, 1000)],
        )
        result = find_optimal_thresholds(stats)
        assert _score(stats, result) == pytest.approx(0.8)

    def test_no_single_candidate_beats_result(self):
        rng = np.random.default_rng(42)
        true_pairs = [(float(v), int(d)) for v, d in zip(rng.normal(60, 10, 40), rng.integers(1000, 60000, 40))]
        false_pairs = [(float(v), int(d)) for v, d in zip(rng.normal(45, 12, 40), rng.integers(1000, 60000, 40))]
        stats = _stats(true_pairs, false_pairs)

        best = _score(stats, find_optimal_thresholds(stats))

        for c in generate_candidates(stats):
            assert _score(stats, Threshold(above=float(c))) <= best + 1e-12
            assert _score(stats, Threshold(below=float(c))) <= best + 1e-12

    def test_input_order_does_not_change_result(self):
        true_pairs = [(3.0, 2000), (7.0, 5000), (5.0, 1000)]
        false_pairs = [(1.0, 4000), (6.0, 1000), (2.0, 3000)]

        a = find_optimal_thresholds(_stats(true_pairs, false_pairs))
        b = find_optimal_thresholds(_stats(list(reversed(true_pairs)), list(reversed(false_pairs))))
        assert a == b

    def test_range_tests_bounded(self, monkeypatch):
        calls = {'n': 0}
        baseline = threshold_module.calculate_threshold_score

        def counting(*args, **kwargs):
            calls['n'] += 1
            return baseline(*args, **kwargs)

        monkeypatch.setattr(threshold_module, 'calculate_threshold_score', counting)

        stats = _stats([(float(i), 1000) for i in range(0, 300, 2)],
                       [(float(i), 1000) for i in range(1, 300, 2)])
        n_candidates = len(generate_candidates(stats))
        find_optimal_thresholds(stats)

        assert calls['n'] <= 2 * n_candidates + 100


class TestCacheKey:

    def test_format(self):
        stats = _stats([(10.0, 1000)], [(90.5, 2000)])
        assert get_cache_key(stats) == "10.00-1000|90.50-2000"

    def test_only_first_five_chunks(self):
        base = [(float(i), 1000) for i in range(5)]
        a = _stats(base + [(100.0, 1000)], [(1.0, 1000)])
        b = _stats(base + [(200.0, 5000)], [(1.0, 1000)])
        assert get_cache_key(a) == get_cache_key(b)
