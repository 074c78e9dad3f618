"""
DISCERN Validation Module

Validates the labeled period set before any per-entity work starts.

Exports:
    - validate_periods: Check that both polarities are present
    - InputValidationError: Raised when validation fails
    - PeriodValidationReport: Polarity counts and warnings
    - find_overlaps: Pairs of periods sharing a span
"""

from .periods import (
    validate_periods,
    InputValidationError,
    PeriodValidationReport,
    PeriodOverlap,
    find_overlaps,
)

__all__ = [
    'validate_periods',
    'InputValidationError',
    'PeriodValidationReport',
    'PeriodOverlap',
    'find_overlaps',
]
