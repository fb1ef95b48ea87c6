"""Configuration loading and validation for driving-evolution runs."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml


class ConfigValidationError(ValueError):
    """Raised when a config file fails validation."""


_REQUIRED_KEYS: tuple[str, ...] = (
    "population_size",
    "generations",
    "seed",
)

_DEFAULTS: dict[str, Any] = {
    "ray_count": 9,
    "ray_length": 250.0,
    "ray_spread": math.pi * 0.75,
    "hidden_layers": [6],
    "tier_boundaries": [0.1, 0.5],
    "tier_amounts": [0.05, 0.15, 0.4],
    "restart_delay": 0.8,
    "max_frames_per_generation": 3000,
    "lane_count": 3,
    "road_width": 252.0,
    "ai_max_speed": 3.5,
    "traffic_max_speed": 2.0,
    "brain_path": "best_brain.json",
}


@dataclass(frozen=True)
class SimulationConfig:
    """Validated run configuration.

    Typed fields cover every parameter the simulation reads; anything else in
    the file is preserved in ``extras``.
    """

    population_size: int
    generations: int
    seed: int
    ray_count: int = 9
    ray_length: float = 250.0
    ray_spread: float = math.pi * 0.75
    hidden_layers: tuple[int, ...] = (6,)
    tier_boundaries: tuple[float, ...] = (0.1, 0.5)
    tier_amounts: tuple[float, ...] = (0.05, 0.15, 0.4)
    restart_delay: float = 0.8
    max_frames_per_generation: int = 3000
    lane_count: int = 3
    road_width: float = 252.0
    ai_max_speed: float = 3.5
    traffic_max_speed: float = 2.0
    brain_path: str = "best_brain.json"
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a configuration value by key.

        Args:
            key: Configuration key name.
            default: Value to return if key does not exist.

        Returns:
            Value associated with ``key`` or ``default``.
        """
        if key != "extras" and hasattr(self, key):
            return getattr(self, key)
        return self.extras.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Return a full JSON-compatible dictionary view of the configuration."""
        payload: dict[str, Any] = {
            "population_size": self.population_size,
            "generations": self.generations,
            "seed": self.seed,
            "ray_count": self.ray_count,
            "ray_length": self.ray_length,
            "ray_spread": self.ray_spread,
            "hidden_layers": list(self.hidden_layers),
            "tier_boundaries": list(self.tier_boundaries),
            "tier_amounts": list(self.tier_amounts),
            "restart_delay": self.restart_delay,
            "max_frames_per_generation": self.max_frames_per_generation,
            "lane_count": self.lane_count,
            "road_width": self.road_width,
            "ai_max_speed": self.ai_max_speed,
            "traffic_max_speed": self.traffic_max_speed,
            "brain_path": self.brain_path,
        }
        payload.update(self.extras)
        return payload


class ConfigLoader:
    """Load and validate run configuration files (YAML or JSON)."""

    @staticmethod
    def load(path: str | Path) -> SimulationConfig:
        """Load a single config from ``path``.

        Args:
            path: Path to a YAML or JSON config file.

        Returns:
            A validated ``SimulationConfig`` instance.
        """
        payload = _read_config_payload(path)
        if not isinstance(payload, Mapping):
            raise ConfigValidationError("Config file must contain a mapping object.")
        return build_config(payload)


def _read_config_payload(path: str | Path) -> Any:
    """Read raw config payload from JSON or YAML file."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigValidationError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    content = config_path.read_text(encoding="utf-8")

    try:
        if suffix == ".json":
            return json.loads(content)
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigValidationError(f"Failed to parse config '{config_path}': {exc}") from exc

    raise ConfigValidationError(f"Unsupported config extension: {suffix}")


def _int_list(key: str, value: Any) -> tuple[int, ...]:
    if not isinstance(value, (list, tuple)):
        raise ConfigValidationError(f"{key} must be a list")
    return tuple(int(v) for v in value)


def _float_list(key: str, value: Any) -> tuple[float, ...]:
    if not isinstance(value, (list, tuple)):
        raise ConfigValidationError(f"{key} must be a list")
    return tuple(float(v) for v in value)


def build_config(payload: Mapping[str, Any]) -> SimulationConfig:
    """Validate a raw mapping and build ``SimulationConfig``."""
    missing = [key for key in _REQUIRED_KEYS if key not in payload]
    if missing:
        raise ConfigValidationError(f"Missing required config keys: {', '.join(missing)}")

    merged = dict(_DEFAULTS)
    merged.update(payload)

    try:
        config = SimulationConfig(
            population_size=int(merged["population_size"]),
            generations=int(merged["generations"]),
            seed=int(merged["seed"]),
            ray_count=int(merged["ray_count"]),
            ray_length=float(merged["ray_length"]),
            ray_spread=float(merged["ray_spread"]),
            hidden_layers=_int_list("hidden_layers", merged["hidden_layers"]),
            tier_boundaries=_float_list("tier_boundaries", merged["tier_boundaries"]),
            tier_amounts=_float_list("tier_amounts", merged["tier_amounts"]),
            restart_delay=float(merged["restart_delay"]),
            max_frames_per_generation=int(merged["max_frames_per_generation"]),
            lane_count=int(merged["lane_count"]),
            road_width=float(merged["road_width"]),
            ai_max_speed=float(merged["ai_max_speed"]),
            traffic_max_speed=float(merged["traffic_max_speed"]),
            brain_path=str(merged["brain_path"]),
            extras={k: v for k, v in payload.items() if k not in _REQUIRED_KEYS and k not in _DEFAULTS},
        )
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Invalid config value: {exc}") from exc

    if config.population_size <= 0:
        raise ConfigValidationError("population_size must be > 0")
    if config.generations < 0:
        raise ConfigValidationError("generations must be >= 0")
    if config.ray_count < 1 or config.ray_count % 2 == 0:
        raise ConfigValidationError("ray_count must be an odd integer >= 1")
    if config.ray_length <= 0:
        raise ConfigValidationError("ray_length must be > 0")
    if any(width <= 0 for width in config.hidden_layers):
        raise ConfigValidationError("hidden_layers widths must be > 0")
    if len(config.tier_amounts) != len(config.tier_boundaries) + 1:
        raise ConfigValidationError("tier_amounts needs exactly one more entry than tier_boundaries")
    if list(config.tier_boundaries) != sorted(config.tier_boundaries) or any(
        not 0.0 <= b <= 1.0 for b in config.tier_boundaries
    ):
        raise ConfigValidationError("tier_boundaries must be ascending fractions in [0.0, 1.0]")
    if config.restart_delay < 0:
        raise ConfigValidationError("restart_delay must be >= 0")
    if config.max_frames_per_generation <= 0:
        raise ConfigValidationError("max_frames_per_generation must be > 0")
    if config.lane_count < 1:
        raise ConfigValidationError("lane_count must be >= 1")
    if config.road_width <= 0:
        raise ConfigValidationError("road_width must be > 0")

    return config
