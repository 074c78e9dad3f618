"""
Period Validation

A request is only answerable with at least one TRUE and one FALSE
period; anything else aborts the whole call before entity processing.

Degenerate periods (end <= start after parsing) are reported as warnings
only: they yield no chunks downstream.

Overlapping periods, of either polarity, are also warnings. The merged
timeline keeps one flag per polarity and lets TRUE win, so overlaps
change categorical counts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Sequence

from discern.core.parsing import parse_timestamp
from discern.core.types import LabeledPeriod


class InputValidationError(ValueError):
    """Raised when the period set cannot support discrimination."""

    def __init__(self, errors: List[str], warnings: List[str] = None):
        self.errors = errors
        self.warnings = warnings or []

        message = "Input validation failed:\n" + "\n".join(
            f"  ERROR: {e}" for e in errors
        )
        if self.warnings:
            message += "\n" + "\n".join(f"  WARNING: {w}" for w in self.warnings)

        super().__init__(message)


class PeriodOverlap(NamedTuple):
    first_id: str
    second_id: str
    overlap_start: int
    overlap_end: int

    @property
    def duration(self) -> int:
        return self.overlap_end - self.overlap_start


@dataclass
class PeriodValidationReport:
    """Report from period validation."""

    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    n_true: int = 0
    n_false: int = 0
    overlaps: List[PeriodOverlap] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'n_true': self.n_true,
            'n_false': self.n_false,
            'overlaps': [o._asdict() for o in self.overlaps],
        }


def find_overlaps(periods: Sequence[LabeledPeriod]) -> List[PeriodOverlap]:
    """Every pair of periods sharing a non-empty span, in input order."""
    bounds = [(p.id, parse_timestamp(p.start), parse_timestamp(p.end)) for p in periods]
    overlaps = []
    for i, (id_a, start_a, end_a) in enumerate(bounds):
        for id_b, start_b, end_b in bounds[i + 1:]:
            lo = max(start_a, start_b)
            hi = min(end_a, end_b)
            if lo < hi:
                overlaps.append(PeriodOverlap(id_a, id_b, lo, hi))
    return overlaps


def validate_periods(periods: Sequence[LabeledPeriod], raise_on_error: bool = True) -> PeriodValidationReport:
    """
    Validate a period set.

    Args:
        periods: Labeled periods
        raise_on_error: Raise InputValidationError instead of returning
            an invalid report

    Returns:
        PeriodValidationReport
    """
    report = PeriodValidationReport()
    report.n_true = sum(1 for p in periods if p.is_true_period)
    report.n_false = len(periods) - report.n_true

    if report.n_true == 0:
        report.errors.append("Need at least one TRUE period (got 0)")
    if report.n_false == 0:
        report.errors.append("Need at least one FALSE period (got 0)")

    for period in periods:
        start = parse_timestamp(period.start)
        end = parse_timestamp(period.end)
        if end <= start:
            report.warnings.append(f"Period '{period.id}' has end <= start; it contributes nothing")

    report.overlaps = find_overlaps(periods)
    for overlap in report.overlaps:
        report.warnings.append(
            f"Periods '{overlap.first_id}' and '{overlap.second_id}' overlap for "
            f"{overlap.duration} ms"
        )

    report.valid = not report.errors
    if not report.valid and raise_on_error:
        raise InputValidationError(report.errors, report.warnings)
    return report
