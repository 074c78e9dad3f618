"""
Discern: which sensor states explain a labeled pattern.

Public API:
    from discern import analyze, BayesianCalculator
    results = analyze(history, periods)

Given entity state histories and TRUE/FALSE labeled periods, ranks every
categorical state and every optimal numeric threshold by how well it
discriminates TRUE time from FALSE time.

Layers:
    discern.core         Engines: compute (dataclasses in, dataclasses out, no file I/O)
    discern.calculator   Entry point + threshold cache lifetime
    discern.io           JSON readers, parquet/CSV/YAML writers
    discern.config       YAML settings (defaults.yaml)
    discern.validation   Period-set validation

Also:
    discern.observations Bayesian sensor definition from ranked results
    discern.simulation   Posterior replay of a sensor definition over history
"""

from discern.calculator import BayesianCalculator, analyze
from discern.validation import InputValidationError

__all__ = ["analyze", "BayesianCalculator", "InputValidationError"]
