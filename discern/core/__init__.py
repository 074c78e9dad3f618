"""
DISCERN Core
============

Pure compute: sequences of dataclasses in, dataclasses out, no file I/O.

Structure:
    types.py        - Input/derived/output dataclasses
    parsing.py      - Lenient timestamp and number parsing
    classify.py     - Numeric vs categorical entity classification
    timeline.py     - Merged-timeline segmentation (categorical path)
    chunks.py       - Per-period chunk extraction + duration totals (numeric path)
    threshold.py    - Optimal threshold search
    cache.py        - Threshold memoization
    probability.py  - Clamped conditional probabilities and ranking
"""

from discern.core.types import (
    HistoryEntry,
    LabeledPeriod,
    ValueDuration,
    SensorChunk,
    StateSegment,
    StateAnalysis,
    NumericStats,
    Threshold,
    EntityProbabilityResult,
)
from discern.core.parsing import parse_timestamp, parse_number
from discern.core.classify import is_numeric_entity
from discern.core.chunks import (
    MIN_CHUNK_MS,
    create_sensor_period_chunks,
    analyze_numeric_states,
    threshold_durations,
)
from discern.core.timeline import create_unified_timeline, analyze_state_segments
from discern.core.threshold import (
    find_optimal_thresholds,
    calculate_threshold_score,
    value_matches_thresholds,
    format_threshold_description,
    get_cache_key,
)
from discern.core.cache import ThresholdCache
from discern.core.probability import clamp_probability, rank_results

__all__ = [
    # Types
    'HistoryEntry',
    'LabeledPeriod',
    'ValueDuration',
    'SensorChunk',
    'StateSegment',
    'StateAnalysis',
    'NumericStats',
    'Threshold',
    'EntityProbabilityResult',
    # Parsing / classification
    'parse_timestamp',
    'parse_number',
    'is_numeric_entity',
    # Segmentation
    'MIN_CHUNK_MS',
    'create_sensor_period_chunks',
    'analyze_numeric_states',
    'threshold_durations',
    'create_unified_timeline',
    'analyze_state_segments',
    # Thresholds
    'find_optimal_thresholds',
    'calculate_threshold_score',
    'value_matches_thresholds',
    'format_threshold_description',
    'get_cache_key',
    'ThresholdCache',
    # Probabilities
    'clamp_probability',
    'rank_results',
]
