"""
Tests for JSON readers and result writers.
"""

import json

import polars as pl
import pytest
import yaml

from discern.core.types import EntityProbabilityResult, Threshold
from discern.io.reader import history_from_records, load_history, load_periods
from discern.io.writer import RESULT_SCHEMA, results_to_frame, write_bayesian_config, write_results
from discern.observations import generate_bayesian_config


def _results():
    return [
        EntityProbabilityResult(
            entity_id="sensor.t", state="> 20.00",
            prob_given_true=0.99, prob_given_false=0.01, discrimination_power=0.98,
            true_occurrences=1, false_occurrences=1, total_true_periods=1, total_false_periods=1,
            thresholds=Threshold(above=20.0),
        ),
        EntityProbabilityResult(
            entity_id="switch.fan", state="on",
            prob_given_true=0.5, prob_given_false=0.01, discrimination_power=0.49,
            true_occurrences=1, false_occurrences=0, total_true_periods=2, total_false_periods=1,
        ),
    ]


class TestReader:

    def test_mapping_shape(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps({
            "switch.fan": [{"state": "on", "last_changed": "2024-01-01T00:00:00Z"}],
            "sensor.empty": [],
        }))
        history = load_history(path)
        assert set(history) == {"switch.fan", "sensor.empty"}
        assert history["switch.fan"][0].state == "on"
        assert history["sensor.empty"] == []

    def test_recorder_shape(self):
        raw = [
            [{"entity_id": "a", "state": "1", "last_changed": 0},
             {"entity_id": "a", "state": "2", "last_changed": 10}],
            [{"entity_id": "b", "state": "on", "last_changed": 5}],
        ]
        history = history_from_records(raw)
        assert [e.state for e in history["a"]] == ["1", "2"]
        assert [e.state for e in history["b"]] == ["on"]

    def test_recorder_shape_needs_entity_id(self):
        with pytest.raises(ValueError):
            history_from_records([[{"state": "on"}]])

    def test_periods(self, tmp_path):
        path = tmp_path / "periods.json"
        path.write_text(json.dumps([
            {"id": "p1", "start": 0, "end": 10, "isTruePeriod": True},
            {"id": "p2", "start": 10, "end": 20, "is_true_period": False, "label": "away"},
        ]))
        periods = load_periods(path)
        assert [p.is_true_period for p in periods] == [True, False]
        assert periods[1].label == "away"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_periods(tmp_path / "nope.json")


class TestWriter:

    def test_frame(self):
        df = results_to_frame(_results())
        assert dict(df.schema) == RESULT_SCHEMA
        assert df['is_numeric'].to_list() == [False, False]
        assert df['threshold_above'].to_list() == [20.0, None]

    def test_empty_frame_keeps_schema(self):
        df = results_to_frame([])
        assert df.height == 0
        assert df.columns == list(RESULT_SCHEMA)

    def test_parquet(self, tmp_path):
        out = write_results(_results(), tmp_path / "out" / "results.parquet", verbose=False)
        df = pl.read_parquet(out)
        assert df['entity_id'].to_list() == ["sensor.t", "switch.fan"]

    def test_csv(self, tmp_path):
        out = write_results(_results(), tmp_path / "results.csv", verbose=False)
        df = pl.read_csv(out)
        assert df.height == 2
        assert df['discrimination_power'].to_list() == pytest.approx([0.98, 0.49])

    def test_bayesian_config(self, tmp_path):
        config = generate_bayesian_config(_results(), "Fan needed")
        out = write_bayesian_config(config, tmp_path / "sensor.yaml", verbose=False)
        loaded = yaml.safe_load(out.read_text())
        assert loaded[0]["unique_id"] == "bayesian_fan_needed"
        assert len(loaded[0]["observations"]) == 2
