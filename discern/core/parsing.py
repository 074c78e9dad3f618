"""
Lenient parsing of timestamps and numeric states.

Malformed input never raises: timestamps fall back to epoch 0 and
non-numeric states parse to None.
"""

import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from discern.core.types import HistoryEntry, Timestamp

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Timestamp) -> int:
    """
    Parse an ISO-8601 string (or epoch milliseconds) to epoch milliseconds.

    Naive timestamps are taken as UTC. Unparsable input returns 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text[-1:] in ('Z', 'z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def parse_number(state: str) -> Optional[float]:
    """Parse a state as a finite real number, or None."""
    if not isinstance(state, str) or '_' in state:
        return None
    try:
        value = float(state)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def timed_history(entity_history: Sequence[HistoryEntry]) -> List[Tuple[int, HistoryEntry]]:
    """(timestamp_ms, entry) pairs sorted by time; ties keep input order."""
    timed = [(parse_timestamp(entry.last_changed), entry) for entry in entity_history]
    timed.sort(key=lambda pair: pair[0])
    return timed


def timestamps_array(timed: Sequence[Tuple[int, HistoryEntry]]) -> np.ndarray:
    return np.fromiter((t for t, _ in timed), dtype=np.int64, count=len(timed))
