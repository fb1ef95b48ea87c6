"""Scripted traffic cars that act purely as moving obstacles."""

from __future__ import annotations

from typing import Sequence

from agents.base import Car, Controls
from geometry.segments import Segment


class TrafficCar(Car):
    """Car that always drives straight ahead and carries no sensor or brain."""

    def __init__(self, x: float, y: float, max_speed: float = 2.0, car_id: str = "", **kwargs: float) -> None:
        super().__init__(x, y, max_speed=max_speed, car_id=car_id, **kwargs)
        self.controls = Controls(forward=True)

    def update(self, borders: Sequence[Segment], traffic: Sequence[Car] = ()) -> None:
        self._advance_body(borders, traffic)
