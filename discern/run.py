"""
Discern Runner
==============

File-level orchestration around the calculator. No computation here.

Usage:
    python -m discern history.json periods.json
    python -m discern history.json periods.json --output results.parquet
    python -m discern history.json periods.json --bayesian-config sensor.yaml --sensor-name "Kitchen occupied"
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from discern.calculator import BayesianCalculator
from discern.config import load_settings
from discern.core.types import EntityProbabilityResult
from discern.io.reader import load_history, load_periods
from discern.io.writer import write_bayesian_config, write_results
from discern.observations import generate_bayesian_config


def format_table(results: List[EntityProbabilityResult], top: int = 20) -> str:
    lines = [
        f"{'entity':<40} {'state':<24} {'P(T)':>6} {'P(F)':>6} {'power':>6}",
        "-" * 86,
    ]
    for r in results[:top]:
        lines.append(
            f"{r.entity_id[:40]:<40} {r.state[:24]:<24} "
            f"{r.prob_given_true:>6.2f} {r.prob_given_false:>6.2f} {r.discrimination_power:>6.2f}"
        )
    if len(results) > top:
        lines.append(f"... and {len(results) - top} more")
    return "\n".join(lines)


def run(
    history_path: str,
    periods_path: str,
    config_path: Optional[str] = None,
    output_path: Optional[str] = None,
    bayesian_config_path: Optional[str] = None,
    sensor_name: str = "Discern sensor",
    top: int = 20,
    n_jobs: Optional[int] = None,
    verbose: bool = True,
) -> List[EntityProbabilityResult]:
    """
    Analyze one history/period pair and write optional outputs.

    Args:
        history_path: History JSON
        periods_path: Periods JSON
        config_path: Optional settings YAML overriding defaults
        output_path: Optional .parquet / .csv results file
        bayesian_config_path: Optional sensor YAML output
        sensor_name: Name for the generated sensor
        top: Rows to print / observations to keep
        n_jobs: Override execution.n_jobs
        verbose: Print progress

    Returns:
        Ranked results
    """
    settings = load_settings(config_path)

    if verbose:
        print("=" * 70)
        print("DISCERN: STATE DISCRIMINATION")
        print("=" * 70)

    history = load_history(history_path)
    periods = load_periods(periods_path)
    if verbose:
        n_true = sum(1 for p in periods if p.is_true_period)
        print(f"Entities: {len(history)}")
        print(f"Periods: {len(periods)} ({n_true} TRUE / {len(periods) - n_true} FALSE)")

    calculator = BayesianCalculator(settings)
    results = calculator.calculate_entity_probabilities(history, periods, n_jobs=n_jobs)

    if verbose:
        print()
        print(format_table(results, top))
        print()

    if output_path:
        write_results(results, output_path, verbose=verbose)

    if bayesian_config_path:
        config = generate_bayesian_config(
            results,
            sensor_name,
            max_observations=top,
            prior=settings.simulation.prior,
            probability_threshold=settings.simulation.probability_threshold,
        )
        write_bayesian_config(config, bayesian_config_path, verbose=verbose)

    return results


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Rank entity states by how well they discriminate TRUE from FALSE periods",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Usage:
  python -m discern history.json periods.json
  python -m discern history.json periods.json --output results.parquet
  python -m discern history.json periods.json --bayesian-config sensor.yaml --sensor-name "Kitchen"
"""
    )
    parser.add_argument('history', help='History JSON (entity_id -> entries, or recorder export)')
    parser.add_argument('periods', help='Periods JSON (list of labeled periods)')
    parser.add_argument('--config', help='Settings YAML overriding the packaged defaults')
    parser.add_argument('--output', help='Write results to .parquet or .csv')
    parser.add_argument('--bayesian-config', help='Write a Bayesian sensor YAML definition')
    parser.add_argument('--sensor-name', default='Discern sensor', help='Name of the generated sensor')
    parser.add_argument('--top', type=int, default=20, help='Rows to print / observations to keep')
    parser.add_argument('--jobs', type=int, help='Parallel workers (1 = synchronous, -1 = all cores)')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    for path in (args.history, args.periods):
        if not Path(path).exists():
            parser.error(f"file not found: {path}")

    run(
        history_path=args.history,
        periods_path=args.periods,
        config_path=args.config,
        output_path=args.output,
        bayesian_config_path=args.bayesian_config,
        sensor_name=args.sensor_name,
        top=args.top,
        n_jobs=args.jobs,
        verbose=not args.quiet,
    )


if __name__ == '__main__':
    main()
