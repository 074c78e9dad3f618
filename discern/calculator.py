"""
Bayesian Calculator
===================

Single entry point: entity histories + labeled periods in, ranked
EntityProbabilityResult list out.

Per entity:
    numeric      -> per-period chunks -> threshold (cached) -> duration-weighted probs
    categorical  -> merged timeline   -> per-period occurrence counts -> probs

The calculator owns one ThresholdCache for its lifetime. With
n_jobs != 1 entities are processed on a joblib thread pool sharing
that cache; output is identical to the synchronous mode.

Usage:
    from discern import BayesianCalculator

    calc = BayesianCalculator()
    results = calc.calculate_entity_probabilities(history, periods)
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from joblib import Parallel, delayed

from discern.config import EngineSettings, load_settings
from discern.core.cache import ThresholdCache
from discern.core.chunks import analyze_numeric_states
from discern.core.classify import is_numeric_entity
from discern.core.probability import numeric_result, rank_results, state_results
from discern.core.threshold import find_optimal_thresholds
from discern.core.timeline import analyze_state_segments, create_unified_timeline
from discern.core.types import EntityProbabilityResult, HistoryEntry, LabeledPeriod
from discern.validation import validate_periods

logger = logging.getLogger(__name__)

HistoryInput = Mapping[str, Sequence[Union[HistoryEntry, Mapping[str, Any]]]]
PeriodInput = Sequence[Union[LabeledPeriod, Mapping[str, Any]]]


class BayesianCalculator:
    """Discrimination engine holding the per-instance threshold cache."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        cache: Optional[ThresholdCache] = None,
    ):
        self.settings = settings or load_settings()
        if cache is None:
            cache = ThresholdCache(
                optimizer=self._optimize,
                fingerprint_chunks=self.settings.fingerprint_chunks,
            )
        self.cache = cache

    def _optimize(self, stats):
        return find_optimal_thresholds(
            stats,
            max_range_tests=self.settings.max_range_tests,
            even_points=self.settings.even_spaced_points,
        )

    def calculate_entity_probabilities(
        self,
        history: HistoryInput,
        periods: PeriodInput,
        n_jobs: Optional[int] = None,
    ) -> List[EntityProbabilityResult]:
        """
        Rank every entity state / threshold by discrimination power.

        Args:
            history: entity_id -> observations (dataclasses or raw dicts)
            periods: labeled periods (dataclasses or raw dicts)
            n_jobs: Override settings.n_jobs (1 = synchronous)

        Returns:
            Results sorted by discrimination power descending

        Raises:
            InputValidationError: zero TRUE or zero FALSE periods
        """
        period_list = [LabeledPeriod.from_record(p) for p in periods]
        report = validate_periods(period_list)
        for warning in report.warnings:
            logger.warning(warning)

        entities = {
            entity_id: [HistoryEntry.from_record(e) for e in entries]
            for entity_id, entries in sorted(history.items())
        }

        n_jobs = self.settings.n_jobs if n_jobs is None else n_jobs
        if n_jobs == 1 or len(entities) < 2:
            per_entity = [
                self._process_entity(entity_id, entries, period_list, report.n_true, report.n_false)
                for entity_id, entries in entities.items()
            ]
        else:
            per_entity = Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(self._process_entity)(
                    entity_id, entries, period_list, report.n_true, report.n_false
                )
                for entity_id, entries in entities.items()
            )

        results = rank_results(r for rows in per_entity for r in rows)
        logger.info(
            "Analyzed %d entities over %d TRUE / %d FALSE periods -> %d results",
            len(entities), report.n_true, report.n_false, len(results),
        )
        return results

    def _process_entity(
        self,
        entity_id: str,
        entries: List[HistoryEntry],
        periods: List[LabeledPeriod],
        n_true: int,
        n_false: int,
    ) -> List[EntityProbabilityResult]:
        if not entries:
            logger.debug("Skipping %s: empty history", entity_id)
            return []

        s = self.settings
        numeric = is_numeric_entity(
            entries,
            sample_size=s.sample_size,
            numeric_ratio=s.numeric_ratio,
            sentinel_states=s.sentinel_states,
        )

        if numeric:
            stats = analyze_numeric_states(entries, periods)
            if stats is None:
                logger.debug("Skipping %s: no numeric chunks", entity_id)
                return []
            thresholds = self.cache.get_or_calculate(entity_id, stats)
            return [numeric_result(
                entity_id, stats, thresholds, n_true, n_false,
                s.probability_floor, s.probability_ceiling,
            )]

        sentinels = set(s.sentinel_states)
        if all(entry.state in sentinels for entry in entries):
            logger.debug("Skipping %s: only sentinel states", entity_id)
            return []

        segments = create_unified_timeline(entries, periods)
        analysis = analyze_state_segments(segments)
        if not analysis:
            logger.debug("Skipping %s: no state segments inside periods", entity_id)
        return state_results(
            entity_id, analysis, n_true, n_false,
            s.probability_floor, s.probability_ceiling,
        )


def analyze(
    history: HistoryInput,
    periods: PeriodInput,
    settings: Optional[EngineSettings] = None,
    n_jobs: Optional[int] = None,
) -> List[EntityProbabilityResult]:
    """One-shot analysis with a fresh calculator (and a fresh cache)."""
    return BayesianCalculator(settings).calculate_entity_probabilities(history, periods, n_jobs=n_jobs)

