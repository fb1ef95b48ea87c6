"""Environment contracts for the driving simulation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from agents.base import Car
from environment.road import Road
from geometry.segments import Segment


class Environment(ABC):
    """Abstract world that AI cars drive through.

    Implementations own static geometry (road borders) and scripted traffic.
    They know nothing about brains or evolution.
    """

    @abstractmethod
    def reset(self) -> None:
        """Restore the world to its start-of-generation state.

        Invariants:
            - Must fully replace traffic; no car objects survive a reset.
            - Must be deterministic under equivalent configuration.
        """

    @abstractmethod
    def step(self) -> None:
        """Advance scripted traffic by one frame."""

    @property
    @abstractmethod
    def road(self) -> Road:
        """Road the cars drive on."""

    @property
    @abstractmethod
    def borders(self) -> Sequence[Segment]:
        """Static boundary segments that damage cars and stop sensor rays."""

    @property
    @abstractmethod
    def traffic(self) -> Sequence[Car]:
        """Scripted obstacle cars currently on the road."""

    @abstractmethod
    def spawn_point(self) -> tuple[float, float]:
        """Return the ``(x, y)`` start position for AI cars."""
