"""
Bayesian Simulation
===================

Replays a Bayesian sensor definition over recorded history to show how
the posterior would have evolved.

At every sample time from start to end (inclusive):
    1. Each observation whose entity has history is active or inactive
       (`state`: equals to_state; `numeric_state`: value > above and
       value < below for the bounds present; with no bounds it is never
       active).
    2. The posterior is updated from the prior, observation by
       observation: p' = pt*p / (pt*p + pf*(1-p)), with 1-pt / 1-pf
       for inactive observations.
    3. The sensor is ON when p >= probability_threshold.

Entities with no history are skipped entirely; entities with history
but no state yet at the sample time count as inactive.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import polars as pl

from discern.core.parsing import parse_number, parse_timestamp, timed_history
from discern.core.types import HistoryEntry, Timestamp
from discern.observations import BayesianObservation, BayesianSensorConfig

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


@dataclass
class SimulationPoint:
    timestamp: int
    probability: float
    sensor_state: bool
    active_observations: List[str] = field(default_factory=list)


@dataclass
class SimulationStatistics:
    avg_probability: float = 0.0
    max_probability: float = 0.0
    min_probability: float = 0.0
    on_time_ms: int = 0
    on_percentage: float = 0.0
    trigger_count: int = 0


@dataclass
class SimulationSummary:
    points: List[SimulationPoint]
    statistics: SimulationStatistics
    on_periods: List[Tuple[int, int]]

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame(
            {
                'timestamp': [p.timestamp for p in self.points],
                'probability': [p.probability for p in self.points],
                'sensor_state': [p.sensor_state for p in self.points],
                'active_observations': [",".join(p.active_observations) for p in self.points],
            },
            schema={
                'timestamp': pl.Int64,
                'probability': pl.Float64,
                'sensor_state': pl.Boolean,
                'active_observations': pl.Utf8,
            },
        )


def update_probability(prior: float, prob_given_true: float, prob_given_false: float) -> float:
    """Single Bayesian update; a zero denominator keeps the prior."""
    numerator = prob_given_true * prior
    denominator = numerator + prob_given_false * (1 - prior)
    if denominator == 0:
        return prior
    return numerator / denominator


def compress_history(entity_history: Sequence[HistoryEntry]) -> Tuple[np.ndarray, List[str]]:
    """Keep state-change points only (consecutive duplicates dropped)."""
    times: List[int] = []
    states: List[str] = []
    for t, entry in timed_history(entity_history):
        if states and states[-1] == entry.state:
            continue
        times.append(t)
        states.append(entry.state)
    return np.array(times, dtype=np.int64), states


class BayesianSimulator:
    """Posterior replay of one Bayesian sensor over cached history."""

    def __init__(
        self,
        prior: float,
        threshold: float,
        observations: Sequence[BayesianObservation],
        history: Mapping[str, Sequence[Union[HistoryEntry, Mapping]]],
        start: Timestamp,
        end: Timestamp,
    ):
        self.prior = prior
        self.threshold = threshold
        self.observations = list(observations)
        self.start = parse_timestamp(start)
        self.end = parse_timestamp(end)

        self._history: Dict[str, Tuple[np.ndarray, List[str]]] = {}
        for entity_id, entries in history.items():
            if not entries:
                continue
            self._history[entity_id] = compress_history(
                [HistoryEntry.from_record(e) for e in entries]
            )

    @classmethod
    def from_config(
        cls,
        config: BayesianSensorConfig,
        history: Mapping[str, Sequence[Union[HistoryEntry, Mapping]]],
        start: Timestamp,
        end: Timestamp,
    ) -> 'BayesianSimulator':
        return cls(config.prior, config.probability_threshold, config.observations, history, start, end)

    def state_at(self, entity_id: str, time_ms: int) -> Optional[str]:
        """Last recorded state at or before time_ms."""
        times, states = self._history.get(entity_id, (None, None))
        if times is None or len(times) == 0:
            return None
        idx = int(np.searchsorted(times, time_ms, side='right')) - 1
        return states[idx] if idx >= 0 else None

    def is_active(self, observation: BayesianObservation, time_ms: int) -> bool:
        state = self.state_at(observation.entity_id, time_ms)
        if state is None:
            return False
        if observation.platform == 'state':
            return observation.to_state is not None and state == observation.to_state
        if observation.platform == 'numeric_state':
            if observation.above is None and observation.below is None:
                return False
            value = parse_number(state)
            if value is None:
                return False
            if observation.above is not None and not value > observation.above:
                return False
            if observation.below is not None and not value < observation.below:
                return False
            return True
        return False

    def probability_at(self, time_ms: int) -> Tuple[float, List[str]]:
        probability = self.prior
        active: List[str] = []
        for obs in self.observations:
            if obs.entity_id not in self._history:
                continue
            if self.is_active(obs, time_ms):
                probability = update_probability(probability, obs.prob_given_true, obs.prob_given_false)
                if obs.entity_id not in active:
                    active.append(obs.entity_id)
            else:
                probability = update_probability(
                    probability, 1 - obs.prob_given_true, 1 - obs.prob_given_false
                )
        return probability, active

    def simulate(self, sample_interval_minutes: float = 5) -> SimulationSummary:
        interval = int(sample_interval_minutes * MS_PER_MINUTE)
        if interval <= 0:
            raise ValueError(f"sample_interval_minutes must be > 0, got {sample_interval_minutes}")

        points: List[SimulationPoint] = []
        t = self.start
        while t <= self.end:
            probability, active = self.probability_at(t)
            points.append(SimulationPoint(
                timestamp=t,
                probability=probability,
                sensor_state=probability >= self.threshold,
                active_observations=active,
            ))
            t += interval

        statistics = self._statistics(points, interval)
        on_periods = self._on_periods(points)
        logger.debug(
            "Simulated %d samples: %d triggers, %.1f%% on",
            len(points), statistics.trigger_count, statistics.on_percentage,
        )
        return SimulationSummary(points=points, statistics=statistics, on_periods=on_periods)

    def _statistics(self, points: List[SimulationPoint], interval: int) -> SimulationStatistics:
        if not points:
            return SimulationStatistics()

        probabilities = np.array([p.probability for p in points], dtype=float)
        on = np.array([p.sensor_state for p in points], dtype=bool)
        # OFF -> ON transitions; a first sample that is ON counts as one
        previous = np.concatenate(([False], on[:-1]))
        trigger_count = int(np.sum(on & ~previous))

        on_time = int(on.sum()) * interval
        total = self.end - self.start
        on_percentage = (on_time / total) * 100 if total > 0 else 0.0

        return SimulationStatistics(
            avg_probability=float(probabilities.mean()),
            max_probability=float(probabilities.max()),
            min_probability=float(probabilities.min()),
            on_time_ms=on_time,
            on_percentage=on_percentage,
            trigger_count=trigger_count,
        )

    @staticmethod
    def _on_periods(points: List[SimulationPoint]) -> List[Tuple[int, int]]:
        periods: List[Tuple[int, int]] = []
        run_start: Optional[int] = None
        for point in points:
            if point.sensor_state and run_start is None:
                run_start = point.timestamp
            elif not point.sensor_state and run_start is not None:
                periods.append((run_start, point.timestamp))
                run_start = None
        if run_start is not None:
            periods.append((run_start, points[-1].timestamp))
        return periods
