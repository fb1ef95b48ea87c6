"""Layered binary-threshold feedforward network used as a car's brain."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from agents.genome import Genome


CONTROL_OUTPUTS = 4


class ShapeMismatchError(ValueError):
    """Raised when vector or level widths do not line up."""


class Level:
    """One weighted transition between two neuron layers.

    ``weights[i][j]`` connects input ``i`` to output ``j``. ``inputs`` and
    ``outputs`` only record the most recent forward pass for display.
    """

    def __init__(self, weights: np.ndarray, biases: np.ndarray) -> None:
        weights = np.array(weights, dtype=float)
        biases = np.array(biases, dtype=float)
        if weights.ndim != 2:
            raise ShapeMismatchError("Level weights must be a 2D matrix.")
        if biases.ndim != 1 or biases.shape[0] != weights.shape[1]:
            raise ShapeMismatchError(
                f"Level expects {weights.shape[1]} biases, got shape {biases.shape}."
            )
        self.weights = weights
        self.biases = biases
        self.inputs = np.zeros(weights.shape[0])
        self.outputs = np.zeros(weights.shape[1])

    @classmethod
    def random(cls, input_count: int, output_count: int, rng: np.random.Generator) -> "Level":
        """Create a level with weights and biases drawn from ``U(-1, 1)``."""
        return cls(
            weights=rng.uniform(-1.0, 1.0, size=(input_count, output_count)),
            biases=rng.uniform(-1.0, 1.0, size=output_count),
        )

    @property
    def input_count(self) -> int:
        return int(self.weights.shape[0])

    @property
    def output_count(self) -> int:
        return int(self.weights.shape[1])

    def feed_forward(self, inputs: np.ndarray) -> np.ndarray:
        sums = inputs @ self.weights - self.biases
        outputs = np.where(sums > 0.0, 1.0, 0.0)
        self.inputs = inputs.copy()
        self.outputs = outputs
        return outputs


class NeuralNetwork(Genome):
    """Ordered chain of levels mapping sensor inputs to control signals."""

    def __init__(self, levels: Sequence[Level]) -> None:
        if not levels:
            raise ShapeMismatchError("A network needs at least one level.")
        for index in range(len(levels) - 1):
            if levels[index].output_count != levels[index + 1].input_count:
                raise ShapeMismatchError(
                    f"Level {index} outputs {levels[index].output_count} values but "
                    f"level {index + 1} expects {levels[index + 1].input_count}."
                )
        self.levels = list(levels)

    @classmethod
    def random(cls, neuron_counts: Sequence[int], rng: np.random.Generator) -> "NeuralNetwork":
        """Build an independently initialised network, e.g. ``[9, 6, 4]``."""
        if len(neuron_counts) < 2:
            raise ShapeMismatchError("neuron_counts needs an input and an output width.")
        return cls(
            [
                Level.random(neuron_counts[i], neuron_counts[i + 1], rng)
                for i in range(len(neuron_counts) - 1)
            ]
        )

    @property
    def input_count(self) -> int:
        return self.levels[0].input_count

    @property
    def output_count(self) -> int:
        return self.levels[-1].output_count

    @property
    def neuron_counts(self) -> list[int]:
        return [self.input_count] + [level.output_count for level in self.levels]

    def feed_forward(self, inputs: Sequence[float]) -> np.ndarray:
        """Propagate ``inputs`` through every level and return the last outputs.

        Raises:
            ShapeMismatchError: ``inputs`` width differs from ``input_count``.
        """
        vector = np.asarray(inputs, dtype=float)
        if vector.ndim != 1 or vector.shape[0] != self.input_count:
            raise ShapeMismatchError(
                f"Network expects {self.input_count} inputs, got shape {vector.shape}."
            )
        for level in self.levels:
            vector = level.feed_forward(vector)
        return vector

    def clone(self) -> "NeuralNetwork":
        """Return a structural deep copy with fresh storage for every array."""
        return NeuralNetwork(
            [Level(weights=level.weights.copy(), biases=level.biases.copy()) for level in self.levels]
        )

    def mutate(self, amount: float, rng: np.random.Generator) -> None:
        """Shift every weight and bias by ``U(-1, 1) * amount`` and clamp to ``[-1, 1]``."""
        amount = min(1.0, max(0.0, float(amount)))
        if amount == 0.0:
            return
        for level in self.levels:
            level.weights += rng.uniform(-1.0, 1.0, size=level.weights.shape) * amount
            np.clip(level.weights, -1.0, 1.0, out=level.weights)
            level.biases += rng.uniform(-1.0, 1.0, size=level.biases.shape) * amount
            np.clip(level.biases, -1.0, 1.0, out=level.biases)

    def distance(self, other: Genome) -> float:
        """Mean absolute difference over all weights and biases."""
        if not isinstance(other, NeuralNetwork):
            raise TypeError("NeuralNetwork distance requires another NeuralNetwork.")
        if other.neuron_counts != self.neuron_counts:
            raise ShapeMismatchError("Cannot compare networks with different structure.")
        total = 0.0
        count = 0
        for mine, theirs in zip(self.levels, other.levels):
            total += float(np.abs(mine.weights - theirs.weights).sum())
            total += float(np.abs(mine.biases - theirs.biases).sum())
            count += mine.weights.size + mine.biases.size
        return total / count


def forward(network: NeuralNetwork, inputs: Sequence[float]) -> np.ndarray:
    return network.feed_forward(inputs)


def mutate(network: NeuralNetwork, amount: float, rng: np.random.Generator) -> None:
    network.mutate(amount, rng)


def clone(network: NeuralNetwork) -> NeuralNetwork:
    return network.clone()
