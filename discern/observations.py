"""
Bayesian Sensor Configuration
=============================

Turns the top-ranked results into a Bayesian binary-sensor definition:
one observation per result, `numeric_state` for threshold results and
`state` for categorical ones.

Usage:
    config = generate_bayesian_config(results, "Kitchen occupied")
    print(config.to_yaml())
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import yaml

from discern.core.types import EntityProbabilityResult

DEFAULT_MAX_OBSERVATIONS = 10


@dataclass
class BayesianObservation:
    entity_id: str
    platform: str
    prob_given_true: float
    prob_given_false: float
    to_state: Optional[str] = None
    above: Optional[float] = None
    below: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'platform': self.platform,
            'entity_id': self.entity_id,
        }
        if self.to_state is not None:
            out['to_state'] = self.to_state
        if self.above is not None:
            out['above'] = self.above
        if self.below is not None:
            out['below'] = self.below
        out['prob_given_true'] = self.prob_given_true
        out['prob_given_false'] = self.prob_given_false
        return out


@dataclass
class BayesianSensorConfig:
    name: str
    unique_id: str
    prior: float = 0.5
    probability_threshold: float = 0.5
    observations: List[BayesianObservation] = field(default_factory=list)
    platform: str = 'bayesian'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'name': self.name,
            'unique_id': self.unique_id,
            'prior': self.prior,
            'probability_threshold': self.probability_threshold,
            'observations': [o.to_dict() for o in self.observations],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump([self.to_dict()], sort_keys=False, default_flow_style=False)


def sensor_unique_id(name: str) -> str:
    return "bayesian_" + re.sub(r"\s+", "_", name.lower())


def observation_from_result(result: EntityProbabilityResult) -> BayesianObservation:
    if result.is_numeric and result.thresholds is not None:
        return BayesianObservation(
            entity_id=result.entity_id,
            platform='numeric_state',
            prob_given_true=result.prob_given_true,
            prob_given_false=result.prob_given_false,
            above=result.thresholds.above,
            below=result.thresholds.below,
        )
    return BayesianObservation(
        entity_id=result.entity_id,
        platform='state',
        prob_given_true=result.prob_given_true,
        prob_given_false=result.prob_given_false,
        to_state=result.state,
    )


def generate_bayesian_config(
    results: Sequence[EntityProbabilityResult],
    sensor_name: str,
    max_observations: int = DEFAULT_MAX_OBSERVATIONS,
    prior: float = 0.5,
    probability_threshold: float = 0.5,
) -> BayesianSensorConfig:
    """
    Build a sensor definition from ranked results.

    Numeric results without a usable threshold are left out: an unbounded
    numeric_state observation would match every value.

    Args:
        results: Ranked results (best first)
        sensor_name: Display name; also slugged into unique_id
        max_observations: Keep only the top N usable results

    Returns:
        BayesianSensorConfig
    """
    usable = [
        r for r in results
        if not (r.is_numeric and (r.thresholds is None or r.thresholds.is_empty))
    ]
    return BayesianSensorConfig(
        name=sensor_name,
        unique_id=sensor_unique_id(sensor_name),
        prior=prior,
        probability_threshold=probability_threshold,
        observations=[observation_from_result(r) for r in usable[:max_observations]],
    )
