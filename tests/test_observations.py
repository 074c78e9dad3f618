"""
Tests for Bayesian sensor config generation.
"""

import yaml

from discern.core.types import EntityProbabilityResult, NumericStats, Threshold, ValueDuration
from discern.observations import generate_bayesian_config, sensor_unique_id


def _state_result(entity_id, state, power):
    return EntityProbabilityResult(
        entity_id=entity_id, state=state,
        prob_given_true=0.9, prob_given_false=0.1, discrimination_power=power,
        true_occurrences=2, false_occurrences=0, total_true_periods=2, total_false_periods=2,
    )


def _numeric_result(entity_id, threshold):
    stats = NumericStats(True, 1.0, 9.0, [ValueDuration(9.0, 1000)], [ValueDuration(1.0, 1000)])
    return EntityProbabilityResult(
        entity_id=entity_id, state=threshold.describe(),
        prob_given_true=0.99, prob_given_false=0.01, discrimination_power=0.98,
        true_occurrences=1, false_occurrences=1, total_true_periods=1, total_false_periods=1,
        numeric_stats=stats, thresholds=threshold,
    )


class TestGenerateBayesianConfig:

    def test_platforms(self):
        results = [
            _numeric_result("sensor.co2", Threshold(above=800.0)),
            _state_result("binary_sensor.motion", "on", 0.8),
        ]
        config = generate_bayesian_config(results, "Office Occupied")

        numeric, state = config.observations
        assert numeric.platform == "numeric_state"
        assert numeric.above == 800.0 and numeric.below is None
        assert state.platform == "state"
        assert state.to_state == "on"
        assert config.unique_id == "bayesian_office_occupied"
        assert config.platform == "bayesian"

    def test_max_observations(self):
        results = [_state_result(f"switch.s{i}", "on", 0.5) for i in range(15)]
        assert len(generate_bayesian_config(results, "x").observations) == 10
        assert len(generate_bayesian_config(results, "x", max_observations=3).observations) == 3

    def test_unique_id_slug(self):
        assert sensor_unique_id("Kitchen  Is\tBusy") == "bayesian_kitchen_is_busy"

    def test_yaml_output(self):
        results = [_numeric_result("sensor.t", Threshold(above=1.0, below=5.0))]
        loaded = yaml.safe_load(generate_bayesian_config(results, "Test", prior=0.3).to_yaml())

        sensor = loaded[0]
        assert sensor["platform"] == "bayesian"
        assert sensor["prior"] == 0.3
        obs = sensor["observations"][0]
        assert obs == {
            "platform": "numeric_state",
            "entity_id": "sensor.t",
            "above": 1.0,
            "below": 5.0,
            "prob_given_true": 0.99,
            "prob_given_false": 0.01,
        }

    def test_numeric_without_threshold_left_out(self):
        results = [
            _numeric_result("sensor.flat", Threshold()),
            _numeric_result("sensor.co2", Threshold(above=800.0)),
            _state_result("binary_sensor.motion", "on", 0.5),
        ]
        config = generate_bayesian_config(results, "Office", max_observations=2)

        assert [o.entity_id for o in config.observations] == ["sensor.co2", "binary_sensor.motion"]
