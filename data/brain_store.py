"""Brain serialization and persistent single-brain storage with atomic writes."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Mapping

from agents.network import Level, NeuralNetwork, ShapeMismatchError


LOGGER = logging.getLogger(__name__)


class DeserializationError(ValueError):
    """Raised for malformed or structurally inconsistent brain payloads."""


def serialize_brain(brain: NeuralNetwork) -> dict[str, Any]:
    """Convert ``brain`` into a plain nested mapping of lists and floats."""
    return {
        "levels": [
            {
                "input_count": level.input_count,
                "output_count": level.output_count,
                "weights": level.weights.tolist(),
                "biases": level.biases.tolist(),
            }
            for level in brain.levels
        ]
    }


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DeserializationError(f"{where} must be numeric, got {type(value).__name__}.")
    number = float(value)
    if not math.isfinite(number):
        raise DeserializationError(f"{where} must be finite.")
    if not -1.0 <= number <= 1.0:
        raise DeserializationError(f"{where} must lie in [-1, 1], got {number}.")
    return number


def _deserialize_level(index: int, payload: Any) -> Level:
    if not isinstance(payload, Mapping):
        raise DeserializationError(f"Level {index} must be a mapping.")
    weights = payload.get("weights")
    biases = payload.get("biases")
    if not isinstance(weights, list) or not weights:
        raise DeserializationError(f"Level {index} weights must be a non-empty list of rows.")
    if not isinstance(biases, list) or not biases:
        raise DeserializationError(f"Level {index} biases must be a non-empty list.")

    output_count = len(biases)
    rows: list[list[float]] = []
    for i, row in enumerate(weights):
        if not isinstance(row, list) or len(row) != output_count:
            raise DeserializationError(
                f"Level {index} weight row {i} must hold {output_count} values."
            )
        rows.append([_number(value, f"Level {index} weight [{i}][{j}]") for j, value in enumerate(row)])
    bias_values = [_number(value, f"Level {index} bias [{j}]") for j, value in enumerate(biases)]

    declared_inputs = payload.get("input_count", len(rows))
    declared_outputs = payload.get("output_count", output_count)
    if declared_inputs != len(rows) or declared_outputs != output_count:
        raise DeserializationError(
            f"Level {index} declares {declared_inputs}x{declared_outputs} "
            f"but holds {len(rows)}x{output_count} weights."
        )
    return Level(weights=rows, biases=bias_values)


def deserialize_brain(payload: Any) -> NeuralNetwork:
    """Rebuild a network from ``serialize_brain`` output.

    Transient ``inputs``/``outputs`` entries written by other tools are ignored.

    Raises:
        DeserializationError: The payload is not a well-formed network.
    """
    if not isinstance(payload, Mapping):
        raise DeserializationError("Brain payload must be a mapping.")
    levels = payload.get("levels")
    if not isinstance(levels, list) or not levels:
        raise DeserializationError("Brain payload must contain a non-empty 'levels' list.")
    try:
        return NeuralNetwork([_deserialize_level(index, level) for index, level in enumerate(levels)])
    except ShapeMismatchError as exc:
        raise DeserializationError(str(exc)) from exc


class BrainStore:
    """Save/load/clear a single serialized brain as a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def save(self, payload: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(dict(payload), sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)
        LOGGER.info("Saved brain to %s", self.path)

    def load(self) -> dict[str, Any] | None:
        """Return the stored payload, or ``None`` when nothing has been saved."""
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DeserializationError(f"Stored brain at {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise DeserializationError(f"Stored brain at {self.path} must be a JSON object.")
        return payload

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        LOGGER.info("Cleared stored brain at %s", self.path)
