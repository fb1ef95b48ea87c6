"""Three-lane highway with a fixed layout of slow traffic."""

from __future__ import annotations

from typing import Sequence

from agents.base import Car
from agents.traffic_car import TrafficCar
from environment.base import Environment
from environment.road import Road
from geometry.segments import Segment


# (lane, y) pairs; AI cars spawn at y=100 and drive towards negative y.
DEFAULT_TRAFFIC_LAYOUT: tuple[tuple[int, float], ...] = (
    (1, -100.0),
    (0, -300.0),
    (2, -300.0),
    (0, -500.0),
    (1, -500.0),
    (1, -700.0),
    (2, -700.0),
    (0, -900.0),
    (1, -900.0),
    (2, -1100.0),
    (0, -1100.0),
)


class HighwayEnvironment(Environment):
    """Straight road plus scripted traffic that never collides."""

    def __init__(
        self,
        road: Road,
        traffic_layout: Sequence[tuple[int, float]] = DEFAULT_TRAFFIC_LAYOUT,
        traffic_max_speed: float = 2.0,
        spawn_lane: int = 1,
        spawn_y: float = 100.0,
    ) -> None:
        self._road = road
        self.traffic_layout = tuple(traffic_layout)
        self.traffic_max_speed = float(traffic_max_speed)
        self.spawn_lane = int(spawn_lane)
        self.spawn_y = float(spawn_y)
        self._traffic: list[TrafficCar] = []
        self.reset()

    @property
    def road(self) -> Road:
        return self._road

    @property
    def borders(self) -> Sequence[Segment]:
        return self._road.borders

    @property
    def traffic(self) -> Sequence[Car]:
        return self._traffic

    def reset(self) -> None:
        self._traffic = [
            TrafficCar(
                self._road.lane_center(lane),
                y,
                max_speed=self.traffic_max_speed,
                car_id=f"traffic_{index}",
            )
            for index, (lane, y) in enumerate(self.traffic_layout)
        ]

    def step(self) -> None:
        for car in self._traffic:
            car.update(self._road.borders, ())

    def spawn_point(self) -> tuple[float, float]:
        return (self._road.lane_center(self.spawn_lane), self.spawn_y)
