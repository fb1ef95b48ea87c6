"""Genome contract for mutation-only evolution."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


class Genome(ABC):
    """Abstract heritable parameter set carried by a controllable agent.

    Evolution in this project never recombines genomes: offspring are produced
    by cloning a parent and mutating the clone in place.
    """

    @abstractmethod
    def clone(self) -> "Genome":
        """Return a deep, independent copy of this genome.

        Invariants:
            - The copy shares no mutable storage with the original.
            - Mutating the copy never alters the original.
        """

    @abstractmethod
    def mutate(self, amount: float, rng: np.random.Generator) -> None:
        """Perturb this genome in place.

        Args:
            amount (float): Mutation intensity, clamped to ``[0, 1]``.
            rng (np.random.Generator): Source of mutation noise.

        Invariants:
            - Structure is preserved; only numeric content changes.
            - ``amount == 0`` leaves the genome unchanged.
        """

    @abstractmethod
    def distance(self, other: "Genome") -> float:
        """Measure non-negative distance between this genome and ``other``."""
