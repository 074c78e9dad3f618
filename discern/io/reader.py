"""
Reader: all input files go through here.

History JSON comes in two shapes:
    {"sensor.a": [{"state": ..., "last_changed": ...}, ...], ...}
    [[{"entity_id": "sensor.a", "state": ..., ...}, ...], ...]   (recorder export)

Periods JSON is a list of {id, start, end, isTruePeriod|is_true_period, label?}.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from discern.core.types import HistoryEntry, LabeledPeriod


def history_from_records(raw: Any) -> Dict[str, List[HistoryEntry]]:
    """Normalize either history shape into entity_id -> entries."""
    history: Dict[str, List[HistoryEntry]] = {}

    if isinstance(raw, dict):
        for entity_id, entries in raw.items():
            history[str(entity_id)] = [HistoryEntry.from_record(e) for e in entries or []]
        return history

    if isinstance(raw, list):
        for group in raw:
            for record in group or []:
                entity_id = record.get('entity_id')
                if entity_id is None:
                    raise ValueError("History list entries must carry 'entity_id'")
                history.setdefault(str(entity_id), []).append(HistoryEntry.from_record(record))
        return history

    raise ValueError(f"Unsupported history payload: {type(raw).__name__}")


def periods_from_records(raw: Any) -> List[LabeledPeriod]:
    if not isinstance(raw, list):
        raise ValueError(f"Periods payload must be a list, got {type(raw).__name__}")
    return [LabeledPeriod.from_record(p) for p in raw]


def _read_json(path: Union[str, Path]) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input file not found: {p}")
    with open(p) as f:
        return json.load(f)


def load_history(path: Union[str, Path]) -> Dict[str, List[HistoryEntry]]:
    return history_from_records(_read_json(path))


def load_periods(path: Union[str, Path]) -> List[LabeledPeriod]:
    return periods_from_records(_read_json(path))
