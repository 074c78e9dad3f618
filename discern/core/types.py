"""
Engine Types
============

Plain dataclasses shared by every compute module.

Input (caller-supplied, read-only for one invocation):
    HistoryEntry      one recorded observation of an entity
    LabeledPeriod     a TRUE/FALSE ground-truth interval

Derived (recomputed on every invocation):
    ValueDuration     (value, duration_ms) pair for one numeric chunk
    SensorChunk       numeric chunk tagged with its period polarity
    StateSegment      merged-timeline segment for categorical analysis
    NumericStats      all numeric chunks of one entity, split by polarity

Output:
    Threshold                 numeric membership test above < v <= below
    EntityProbabilityResult   one ranked row
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

Timestamp = Union[str, int, float, None]


@dataclass(frozen=True)
class HistoryEntry:
    """One observation. `attributes` is opaque and never inspected."""
    state: str
    last_changed: Timestamp
    last_updated: Timestamp = None
    attributes: Optional[Any] = None

    @classmethod
    def from_record(cls, record: Union['HistoryEntry', Mapping[str, Any]]) -> 'HistoryEntry':
        if isinstance(record, HistoryEntry):
            return record
        last_changed = record.get('last_changed', record.get('observed_at'))
        return cls(
            state=str(record.get('state', '')),
            last_changed=last_changed,
            last_updated=record.get('last_updated', last_changed),
            attributes=record.get('attributes'),
        )


@dataclass(frozen=True)
class LabeledPeriod:
    id: str
    start: Timestamp
    end: Timestamp
    is_true_period: bool
    label: Optional[str] = None

    @classmethod
    def from_record(cls, record: Union['LabeledPeriod', Mapping[str, Any]]) -> 'LabeledPeriod':
        if isinstance(record, LabeledPeriod):
            return record
        polarity = record.get('is_true_period', record.get('isTruePeriod', False))
        return cls(
            id=str(record.get('id', '')),
            start=record.get('start'),
            end=record.get('end'),
            is_true_period=bool(polarity),
            label=record.get('label'),
        )


@dataclass(frozen=True)
class ValueDuration:
    value: float
    duration: int


@dataclass(frozen=True)
class SensorChunk:
    value: float
    duration: int
    is_true_period: bool


@dataclass(frozen=True)
class StateSegment:
    """
    Half-open interval [start, end) of the merged timeline.

    period_keys holds the boundary keys ("{start}_{end}") of the active
    periods whose polarity matches is_true_period.
    """
    start: int
    end: int
    state: str
    value: Optional[float]
    is_true_period: bool
    period_keys: Tuple[str, ...] = ()

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass
class StateAnalysis:
    true_occurrences: int = 0
    false_occurrences: int = 0


@dataclass
class NumericStats:
    is_numeric: bool
    min: Optional[float]
    max: Optional[float]
    true_chunks: List[ValueDuration] = field(default_factory=list)
    false_chunks: List[ValueDuration] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Threshold:
    """Membership test `above < value <= below`; a missing bound is open."""
    above: Optional[float] = None
    below: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.above is None and self.below is None

    def matches(self, value: float) -> bool:
        if self.is_empty:
            return False
        if self.above is not None and not value > self.above:
            return False
        if self.below is not None and not value <= self.below:
            return False
        return True

    def describe(self) -> str:
        if self.above is not None and self.below is not None:
            return f"{self.above:.2f} < value <= {self.below:.2f}"
        if self.above is not None:
            return f"> {self.above:.2f}"
        if self.below is not None:
            return f"<= {self.below:.2f}"
        return "numeric"


@dataclass(frozen=True)
class EntityProbabilityResult:
    entity_id: str
    state: str
    prob_given_true: float
    prob_given_false: float
    discrimination_power: float
    true_occurrences: int
    false_occurrences: int
    total_true_periods: int
    total_false_periods: int
    numeric_stats: Optional[NumericStats] = None
    thresholds: Optional[Threshold] = None

    @property
    def is_numeric(self) -> bool:
        return self.numeric_stats is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            'entity_id': self.entity_id,
            'state': self.state,
            'prob_given_true': self.prob_given_true,
            'prob_given_false': self.prob_given_false,
            'discrimination_power': self.discrimination_power,
            'true_occurrences': self.true_occurrences,
            'false_occurrences': self.false_occurrences,
            'total_true_periods': self.total_true_periods,
            'total_false_periods': self.total_false_periods,
            'numeric_stats': self.numeric_stats.to_dict() if self.numeric_stats else None,
            'thresholds': asdict(self.thresholds) if self.thresholds else None,
        }
