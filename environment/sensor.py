"""Ray-casting distance sensor mounted on a car."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from geometry.segments import Intersection, Point, Polygon, Segment, intersect, lerp, polygon_edges


@dataclass(frozen=True)
class SensorConfig:
    """Fixed ray geometry for one sensor."""

    ray_count: int = 9
    ray_length: float = 250.0
    ray_spread: float = math.pi * 0.75

    def __post_init__(self) -> None:
        if self.ray_count < 1 or self.ray_count % 2 == 0:
            raise ValueError("ray_count must be an odd integer >= 1")
        if self.ray_length <= 0:
            raise ValueError("ray_length must be > 0")
        if self.ray_spread < 0:
            raise ValueError("ray_spread must be >= 0")


class Sensor:
    """Fan of rays reporting the nearest obstacle along each bearing.

    ``rays`` and ``readings`` are rebuilt on every ``update`` and always hold
    exactly ``config.ray_count`` entries, index 0 being the leftmost ray.
    A reading of ``None`` means the ray reached its full length unobstructed.
    """

    def __init__(self, config: SensorConfig | None = None) -> None:
        self.config = config or SensorConfig()
        self.rays: list[Segment] = []
        self.readings: list[Intersection | None] = []

    @property
    def ray_count(self) -> int:
        return self.config.ray_count

    def update(
        self,
        x: float,
        y: float,
        angle: float,
        borders: Sequence[Segment],
        obstacles: Sequence[Polygon] = (),
    ) -> list[Intersection | None]:
        """Recast rays from ``(x, y)`` facing ``angle`` and refresh readings."""
        self._cast_rays(x, y, angle)
        obstacle_edges = [edge for polygon in obstacles for edge in polygon_edges(polygon)]
        self.readings = [self._get_reading(ray, borders, obstacle_edges) for ray in self.rays]
        return self.readings

    def _cast_rays(self, x: float, y: float, angle: float) -> None:
        count = self.config.ray_count
        half_spread = self.config.ray_spread / 2.0
        length = self.config.ray_length
        start = Point(x, y)

        rays: list[Segment] = []
        for index in range(count):
            t = 0.5 if count == 1 else index / (count - 1)
            ray_angle = lerp(half_spread, -half_spread, t) + angle
            end = Point(x - math.sin(ray_angle) * length, y - math.cos(ray_angle) * length)
            rays.append((start, end))
        self.rays = rays

    @staticmethod
    def _get_reading(
        ray: Segment,
        borders: Sequence[Segment],
        obstacle_edges: Sequence[Segment],
    ) -> Intersection | None:
        nearest: Intersection | None = None
        for segment in (*borders, *obstacle_edges):
            touch = intersect(ray, segment)
            # strict comparison keeps the first of equally near hits
            if touch is not None and (nearest is None or touch.offset < nearest.offset):
                nearest = touch
        return nearest


def readings_to_inputs(readings: Sequence[Intersection | None]) -> list[float]:
    """Map readings to network inputs: ``1 - offset`` per hit, ``0`` when clear."""
    return [0.0 if reading is None else 1.0 - reading.offset for reading in readings]
