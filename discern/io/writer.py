"""
Writer: all result writes go through here.

No other module should call df.write_parquet directly.
"""

from pathlib import Path
from typing import Sequence, Union

import polars as pl

from discern.core.types import EntityProbabilityResult
from discern.observations import BayesianSensorConfig

RESULT_SCHEMA = {
    'entity_id': pl.Utf8,
    'state': pl.Utf8,
    'prob_given_true': pl.Float64,
    'prob_given_false': pl.Float64,
    'discrimination_power': pl.Float64,
    'true_occurrences': pl.Int64,
    'false_occurrences': pl.Int64,
    'total_true_periods': pl.Int64,
    'total_false_periods': pl.Int64,
    'is_numeric': pl.Boolean,
    'threshold_above': pl.Float64,
    'threshold_below': pl.Float64,
}


def results_to_frame(results: Sequence[EntityProbabilityResult]) -> pl.DataFrame:
    """One row per result; thresholds flattened to two nullable columns."""
    rows = [
        {
            'entity_id': r.entity_id,
            'state': r.state,
            'prob_given_true': r.prob_given_true,
            'prob_given_false': r.prob_given_false,
            'discrimination_power': r.discrimination_power,
            'true_occurrences': r.true_occurrences,
            'false_occurrences': r.false_occurrences,
            'total_true_periods': r.total_true_periods,
            'total_false_periods': r.total_false_periods,
            'is_numeric': r.is_numeric,
            'threshold_above': r.thresholds.above if r.thresholds else None,
            'threshold_below': r.thresholds.below if r.thresholds else None,
        }
        for r in results
    ]
    return pl.DataFrame(rows, schema=RESULT_SCHEMA)


def write_results(
    results: Sequence[EntityProbabilityResult],
    path: Union[str, Path],
    verbose: bool = True,
) -> Path:
    """
    Write results as parquet (default) or CSV (.csv suffix).

    Empty results still produce a schema-only file.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df = results_to_frame(results)

    if out.suffix.lower() == '.csv':
        df.write_csv(str(out))
    else:
        df.write_parquet(str(out))

    if verbose:
        print(f"  -> {out} ({df.height} rows)")
    return out


def write_bayesian_config(
    config: BayesianSensorConfig,
    path: Union[str, Path],
    verbose: bool = True,
) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(config.to_yaml())
    if verbose:
        print(f"  -> {out} ({len(config.observations)} observations)")
    return out
