"""Single-elite seeding with tiered mutation strengths."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from agents.base import Car
from agents.network import NeuralNetwork
from evolution.base import BrainFactory, EvolutionStrategy


@dataclass(frozen=True)
class MutationTier:
    """Agents with index below ``round(upper_fraction * size)`` get ``amount``."""

    upper_fraction: float
    amount: float


DEFAULT_TIERS: tuple[MutationTier, ...] = (
    MutationTier(upper_fraction=0.1, amount=0.05),
    MutationTier(upper_fraction=0.5, amount=0.15),
    MutationTier(upper_fraction=1.0, amount=0.4),
)


def build_tiers(boundaries: Sequence[float], amounts: Sequence[float]) -> tuple[MutationTier, ...]:
    """Pair ascending boundaries with amounts; the last amount covers the rest."""
    if len(amounts) != len(boundaries) + 1:
        raise ValueError("Need exactly one more mutation amount than tier boundaries.")
    fractions = [float(b) for b in boundaries]
    if any(not 0.0 <= f <= 1.0 for f in fractions) or fractions != sorted(fractions):
        raise ValueError("Tier boundaries must be ascending fractions in [0, 1].")
    fractions.append(1.0)
    return tuple(MutationTier(upper_fraction=f, amount=float(a)) for f, a in zip(fractions, amounts))


def _boundary(fraction: float, size: int) -> int:
    # half-up rounding, unlike round()'s banker's rounding
    return int(math.floor(fraction * size + 0.5))


def mutation_amount(index: int, size: int, tiers: Sequence[MutationTier]) -> float:
    """Mutation amount for population slot ``index``; slot 0 is the elite."""
    if index == 0:
        return 0.0
    for tier in tiers:
        if index < _boundary(tier.upper_fraction, size):
            return tier.amount
    return tiers[-1].amount


def tier_counts(size: int, tiers: Sequence[MutationTier]) -> list[int]:
    """Return ``[elite, tier_0, tier_1, ...]`` slot counts summing to ``size``."""
    if size <= 0:
        return [0] + [0] * len(tiers)
    counts = [1] + [0] * len(tiers)
    for index in range(1, size):
        amount_index = len(tiers) - 1
        for position, tier in enumerate(tiers):
            if index < _boundary(tier.upper_fraction, size):
                amount_index = position
                break
        counts[amount_index + 1] += 1
    return counts


def seed_population(
    baseline: NeuralNetwork | None,
    size: int,
    tiers: Sequence[MutationTier],
    rng: np.random.Generator,
    random_brain: BrainFactory,
) -> list[NeuralNetwork]:
    """Build ``size`` independent brains from ``baseline``.

    With a baseline, slot 0 is an unmutated clone and later slots are clones
    mutated by their tier's amount. Without one, every slot gets a freshly
    initialised brain.
    """
    if baseline is None:
        return [random_brain() for _ in range(size)]

    brains: list[NeuralNetwork] = []
    for index in range(size):
        brain = baseline.clone()
        brain.mutate(mutation_amount(index, size, tiers), rng)
        brains.append(brain)
    return brains


class TieredMutationStrategy(EvolutionStrategy):
    """Keep the elite verbatim and spread the rest over mutation tiers."""

    def __init__(self, tiers: Sequence[MutationTier] = DEFAULT_TIERS) -> None:
        if not tiers:
            raise ValueError("At least one mutation tier is required.")
        self.tiers = tuple(tiers)

    def seed_population(
        self,
        baseline: NeuralNetwork | None,
        size: int,
        rng: np.random.Generator,
        random_brain: BrainFactory,
    ) -> list[NeuralNetwork]:
        return seed_population(baseline, size, self.tiers, rng, random_brain)


def select_best(cars: Sequence[Car]) -> Car | None:
    """Return the car with maximum ``fitness``.

    Ties keep the earliest car in population order, so the result is stable
    for a given ordering. Returns ``None`` for an empty population.
    """
    best: Car | None = None
    best_fitness = -math.inf
    for car in cars:
        fitness = float(car.fitness)
        if best is None or fitness > best_fitness:
            best = car
            best_fitness = fitness
    return best
