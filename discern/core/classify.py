"""
Entity Classifier
=================

Decides whether an entity is numeric or categorical from a small sample
of its (time-ordered) observations.

Sentinel states ("unavailable", "unknown") mean "no data" and are
excluded from the sample before the ratio test. An entity whose sample
is empty or all-sentinel is categorical.
"""

from typing import Iterable, Sequence

from discern.core.parsing import parse_number, timed_history
from discern.core.types import HistoryEntry

SENTINEL_STATES = ('unavailable', 'unknown')
SAMPLE_SIZE = 10
NUMERIC_RATIO = 0.7


def is_numeric_entity(
    entity_history: Sequence[HistoryEntry],
    sample_size: int = SAMPLE_SIZE,
    numeric_ratio: float = NUMERIC_RATIO,
    sentinel_states: Iterable[str] = SENTINEL_STATES,
) -> bool:
    """
    Classify an entity as numeric.

    Args:
        entity_history: Observations in any order
        sample_size: Number of earliest observations to inspect
        numeric_ratio: Minimum fraction of usable samples that must parse
            as finite numbers

    Returns:
        True if numeric, False otherwise (never raises)
    """
    if not entity_history:
        return False

    sentinels = set(sentinel_states)
    sample = [entry for _, entry in timed_history(entity_history)[:sample_size]]
    usable = [entry.state for entry in sample if entry.state not in sentinels]
    if not usable:
        return False

    numeric_count = sum(1 for state in usable if parse_number(state) is not None)
    return numeric_count >= numeric_ratio * len(usable)
