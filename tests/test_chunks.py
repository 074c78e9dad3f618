"""
Tests for per-period chunk extraction and duration aggregation (numeric path).
"""

from discern.core.chunks import (
    MIN_CHUNK_MS,
    analyze_numeric_states,
    create_sensor_period_chunks,
    threshold_durations,
)
from discern.core.types import HistoryEntry, LabeledPeriod, NumericStats, Threshold, ValueDuration


def _entry(state, t):
    return HistoryEntry(state=state, last_changed=t)


def _period(pid, start, end, is_true):
    return LabeledPeriod(id=pid, start=start, end=end, is_true_period=is_true)


def _pairs(chunks):
    return [(c.value, c.duration, c.is_true_period) for c in chunks]


class TestSensorPeriodChunks:
    """Each period is split independently at in-period observations."""

    def test_value_before_period_start_carries_in(self):
        history = [_entry("10", -5000), _entry("20", 4000), _entry("30", 9500)]
        chunks = create_sensor_period_chunks(history, [_period("t", 0, 10000, True)])

        # [9500, 10000) is 500 ms -> discarded
        assert _pairs(chunks) == [(10.0, 4000, True), (20.0, 5500, True)]

    def test_gap_before_first_observation_emits_nothing(self):
        history = [_entry("10", 2000)]
        chunks = create_sensor_period_chunks(history, [_period("t", 0, 10000, True)])
        assert _pairs(chunks) == [(10.0, 8000, True)]

    def test_observation_at_period_start_is_initial_value(self):
        history = [_entry("10", 0), _entry("90", 1000)]
        periods = [_period("t", 0, 1000, True), _period("f", 1000, 2000, False)]

        chunks = create_sensor_period_chunks(history, periods)
        assert _pairs(chunks) == [(10.0, 1000, True), (90.0, 1000, False)]

    def test_overlapping_periods_chunked_independently(self):
        history = [_entry("5", 0)]
        periods = [_period("t", 0, 10000, True), _period("f", 5000, 15000, False)]

        chunks = create_sensor_period_chunks(history, periods)
        assert _pairs(chunks) == [(5.0, 10000, True), (5.0, 10000, False)]

    def test_non_numeric_change_keeps_previous_value(self):
        history = [_entry("10", 0), _entry("unavailable", 3000)]
        chunks = create_sensor_period_chunks(history, [_period("t", 0, 10000, True)])
        assert _pairs(chunks) == [(10.0, 3000, True), (10.0, 7000, True)]

    def test_same_timestamp_last_entry_wins(self):
        history = [_entry("10", 0), _entry("20", 5000), _entry("30", 5000)]
        chunks = create_sensor_period_chunks(history, [_period("t", 0, 10000, True)])
        assert _pairs(chunks) == [(10.0, 5000, True), (30.0, 5000, True)]

    def test_inverted_period_produces_nothing(self):
        history = [_entry("10", 0)]
        assert create_sensor_period_chunks(history, [_period("t", 5000, 1000, True)]) == []

    def test_no_chunk_below_noise_floor(self):
        history = [_entry(str(i), i * 700) for i in range(20)]
        chunks = create_sensor_period_chunks(history, [_period("t", 0, 14000, True)])
        assert chunks == []
        assert MIN_CHUNK_MS == 1000


class TestAnalyzeNumericStates:

    def test_stats_split_by_polarity(self):
        history = [_entry("10", 0), _entry("90", 1000)]
        periods = [_period("t", 0, 1000, True), _period("f", 1000, 2000, False)]

        stats = analyze_numeric_states(history, periods)

        assert stats.is_numeric
        assert stats.min == 10.0
        assert stats.max == 90.0
        assert stats.true_chunks == [ValueDuration(10.0, 1000)]
        assert stats.false_chunks == [ValueDuration(90.0, 1000)]

    def test_no_chunks_returns_none(self):
        history = [_entry("10", 50000)]
        assert analyze_numeric_states(history, [_period("t", 0, 10000, True)]) is None


class TestDurationAggregation:

    def test_threshold_durations(self):
        stats = NumericStats(
            is_numeric=True, min=1.0, max=9.0,
            true_chunks=[ValueDuration(8.0, 3000), ValueDuration(2.0, 1000)],
            false_chunks=[ValueDuration(1.0, 4000), ValueDuration(9.0, 4000)],
        )

        totals = threshold_durations(stats, Threshold(above=5.0))

        assert totals.true_matching == 3000
        assert totals.true_total == 4000
        assert totals.false_matching == 4000
        assert totals.false_total == 8000
        assert totals.prob_given_true == 0.75
        assert totals.prob_given_false == 0.5
