"""
Probability Assembler
=====================

Turns aggregated durations (numeric) or occurrence counts (categorical)
into clamped conditional probabilities and a discrimination score, then
ranks every result.

    P(obs | TRUE)  = matching / total           (numeric, duration-weighted)
                   = occurrences / n_true        (categorical, period counts)
    discrimination = |clamp(P_true) - clamp(P_false)|

Ordering is deterministic: discrimination descending, then entity_id,
then state.
"""

from typing import Dict, Iterable, List

from discern.core.chunks import threshold_durations
from discern.core.types import EntityProbabilityResult, NumericStats, StateAnalysis, Threshold

PROBABILITY_FLOOR = 0.01
PROBABILITY_CEILING = 0.99


def clamp_probability(
    p: float,
    floor: float = PROBABILITY_FLOOR,
    ceiling: float = PROBABILITY_CEILING,
) -> float:
    return max(floor, min(ceiling, p))


def numeric_result(
    entity_id: str,
    stats: NumericStats,
    thresholds: Threshold,
    n_true: int,
    n_false: int,
    floor: float = PROBABILITY_FLOOR,
    ceiling: float = PROBABILITY_CEILING,
) -> EntityProbabilityResult:
    """Numeric row; occurrence fields carry the period counts."""
    totals = threshold_durations(stats, thresholds)
    p_true = clamp_probability(totals.prob_given_true, floor, ceiling)
    p_false = clamp_probability(totals.prob_given_false, floor, ceiling)

    return EntityProbabilityResult(
        entity_id=entity_id,
        state=thresholds.describe(),
        prob_given_true=p_true,
        prob_given_false=p_false,
        discrimination_power=abs(p_true - p_false),
        true_occurrences=n_true,
        false_occurrences=n_false,
        total_true_periods=n_true,
        total_false_periods=n_false,
        numeric_stats=stats,
        thresholds=thresholds,
    )


def state_results(
    entity_id: str,
    analysis: Dict[str, StateAnalysis],
    n_true: int,
    n_false: int,
    floor: float = PROBABILITY_FLOOR,
    ceiling: float = PROBABILITY_CEILING,
) -> List[EntityProbabilityResult]:
    results = []
    for state, counts in analysis.items():
        p_true = clamp_probability(counts.true_occurrences / n_true, floor, ceiling)
        p_false = clamp_probability(counts.false_occurrences / n_false, floor, ceiling)
        results.append(EntityProbabilityResult(
            entity_id=entity_id,
            state=state,
            prob_given_true=p_true,
            prob_given_false=p_false,
            discrimination_power=abs(p_true - p_false),
            true_occurrences=counts.true_occurrences,
            false_occurrences=counts.false_occurrences,
            total_true_periods=n_true,
            total_false_periods=n_false,
        ))
    return results


def rank_results(results: Iterable[EntityProbabilityResult]) -> List[EntityProbabilityResult]:
    return sorted(results, key=lambda r: (-r.discrimination_power, r.entity_id, r.state))
