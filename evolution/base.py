"""Evolution strategy contracts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

import numpy as np

from agents.network import NeuralNetwork


BrainFactory = Callable[[], NeuralNetwork]


class EvolutionStrategy(ABC):
    """Abstract policy turning one baseline brain into a new generation.

    Strategies are mutation-only: there is no recombination between brains.
    """

    @abstractmethod
    def seed_population(
        self,
        baseline: NeuralNetwork | None,
        size: int,
        rng: np.random.Generator,
        random_brain: BrainFactory,
    ) -> list[NeuralNetwork]:
        """Generate ``size`` brains for the next generation.

        Args:
            baseline (NeuralNetwork | None): Best brain so far, or ``None`` to
                start from scratch.
            size (int): Population size.
            rng (np.random.Generator): Mutation noise source.
            random_brain (BrainFactory): Builds a fresh brain when no
                baseline exists.

        Returns:
            list[NeuralNetwork]: Exactly ``size`` brains.

        Invariants:
            - No two returned brains share mutable storage.
            - ``baseline`` itself is never mutated.
        """
