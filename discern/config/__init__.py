"""
DISCERN Engine Configuration

Settings are read from YAML: the packaged defaults.yaml first, then an
optional user file whose keys override section by section.

The 1000 ms minimum chunk duration is fixed in discern.core.chunks and
is not a setting.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


class ConfigError(ValueError):
    """Raised when a settings file is malformed."""


@dataclass
class SimulationSettings:
    prior: float = 0.5
    probability_threshold: float = 0.5
    sample_interval_minutes: float = 5


@dataclass
class EngineSettings:
    """Full engine configuration loaded from YAML."""
    sample_size: int = 10
    numeric_ratio: float = 0.7
    sentinel_states: List[str] = field(default_factory=lambda: ['unavailable', 'unknown'])
    probability_floor: float = 0.01
    probability_ceiling: float = 0.99
    even_spaced_points: int = 21
    max_range_tests: int = 100
    fingerprint_chunks: int = 5
    n_jobs: int = 1
    simulation: SimulationSettings = field(default_factory=SimulationSettings)

    def validate(self) -> None:
        errors = []
        if self.sample_size < 1:
            errors.append(f"classification.sample_size must be >= 1, got {self.sample_size}")
        if not 0.0 < self.numeric_ratio <= 1.0:
            errors.append(f"classification.numeric_ratio must be in (0, 1], got {self.numeric_ratio}")
        if not 0.0 <= self.probability_floor < self.probability_ceiling <= 1.0:
            errors.append(
                f"probability floor/ceiling must satisfy 0 <= floor < ceiling <= 1, "
                f"got {self.probability_floor}/{self.probability_ceiling}"
            )
        if self.even_spaced_points < 2:
            errors.append(f"threshold.even_spaced_points must be >= 2, got {self.even_spaced_points}")
        if self.max_range_tests < 0:
            errors.append(f"threshold.max_range_tests must be >= 0, got {self.max_range_tests}")
        if self.n_jobs == 0:
            errors.append("execution.n_jobs must be non-zero")
        if self.simulation.sample_interval_minutes <= 0:
            errors.append("simulation.sample_interval_minutes must be > 0")
        if errors:
            raise ConfigError("Invalid settings:\n" + "\n".join(f"  - {e}" for e in errors))


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse settings file {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping, got {type(raw).__name__}")
    return raw


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def settings_from_dict(raw: Dict[str, Any]) -> EngineSettings:
    classification = raw.get('classification', {})
    probability = raw.get('probability', {})
    threshold = raw.get('threshold', {})
    execution = raw.get('execution', {})
    simulation = raw.get('simulation', {})

    settings = EngineSettings(
        sample_size=int(classification.get('sample_size', 10)),
        numeric_ratio=float(classification.get('numeric_ratio', 0.7)),
        sentinel_states=list(classification.get('sentinel_states', ['unavailable', 'unknown'])),
        probability_floor=float(probability.get('floor', 0.01)),
        probability_ceiling=float(probability.get('ceiling', 0.99)),
        even_spaced_points=int(threshold.get('even_spaced_points', 21)),
        max_range_tests=int(threshold.get('max_range_tests', 100)),
        fingerprint_chunks=int(threshold.get('fingerprint_chunks', 5)),
        n_jobs=int(execution.get('n_jobs', 1)),
        simulation=SimulationSettings(
            prior=float(simulation.get('prior', 0.5)),
            probability_threshold=float(simulation.get('probability_threshold', 0.5)),
            sample_interval_minutes=float(simulation.get('sample_interval_minutes', 5)),
        ),
    )
    settings.validate()
    return settings


def load_settings(path: Optional[Union[str, Path]] = None) -> EngineSettings:
    """
    Load settings: packaged defaults, overridden by `path` if given.

    Raises:
        FileNotFoundError: path given but missing
        ConfigError: malformed YAML or invalid values
    """
    raw = _read_yaml(DEFAULTS_PATH)
    if path is not None:
        user_path = Path(path)
        if not user_path.exists():
            raise FileNotFoundError(f"Settings file not found: {user_path}")
        raw = _merge(raw, _read_yaml(user_path))
    return settings_from_dict(raw)


__all__ = [
    'ConfigError',
    'EngineSettings',
    'SimulationSettings',
    'load_settings',
    'settings_from_dict',
    'DEFAULTS_PATH',
]
