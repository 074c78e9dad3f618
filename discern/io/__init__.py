"""
DISCERN I/O

    reader.py   JSON history / period ingestion
    writer.py   polars result frames, parquet/CSV and YAML output
"""

from discern.io.reader import (
    load_history,
    load_periods,
    history_from_records,
    periods_from_records,
)
from discern.io.writer import (
    results_to_frame,
    write_results,
    write_bayesian_config,
)

__all__ = [
    'load_history',
    'load_periods',
    'history_from_records',
    'periods_from_records',
    'results_to_frame',
    'write_results',
    'write_bayesian_config',
]
