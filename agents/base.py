"""Car body contract shared by scripted traffic and network-driven cars."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from agents.network import NeuralNetwork
from environment.sensor import Sensor
from geometry.segments import Point, Segment, polygons_intersect


ACCELERATION = 0.2
FRICTION = 0.05
STEERING_RATE = 0.03


@dataclass
class Controls:
    """Discrete driving inputs for one frame."""

    forward: bool = False
    left: bool = False
    right: bool = False
    reverse: bool = False


class Car(ABC):
    """Rectangular car with arcade kinematics.

    Angle 0 points towards negative y and positive angles turn left. Damage is
    permanent: a damaged car stops moving and keeps its last pose.
    """

    sensor: Sensor | None = None
    brain: NeuralNetwork | None = None

    def __init__(
        self,
        x: float,
        y: float,
        width: float = 30.0,
        height: float = 50.0,
        max_speed: float = 3.0,
        car_id: str = "",
    ) -> None:
        self.car_id = car_id
        self.x = float(x)
        self.y = float(y)
        self.width = float(width)
        self.height = float(height)
        self.max_speed = float(max_speed)

        self.speed = 0.0
        self.angle = 0.0
        self.damaged = False
        self.controls = Controls()

        self.start_y = self.y
        self.fitness = 0.0
        self.polygon: list[Point] = self._create_polygon()

    @property
    def controllable(self) -> bool:
        return self.brain is not None

    @abstractmethod
    def update(self, borders: Sequence[Segment], traffic: Sequence["Car"]) -> None:
        """Advance this car by one frame against road borders and traffic."""

    def _advance_body(self, borders: Sequence[Segment], traffic: Sequence["Car"]) -> None:
        if self.damaged:
            return
        self._move()
        self.polygon = self._create_polygon()
        self.damaged = self._assess_damage(borders, traffic)
        self.fitness = max(self.fitness, self.start_y - self.y)

    def _move(self) -> None:
        if self.controls.forward:
            self.speed += ACCELERATION
        if self.controls.reverse:
            self.speed -= ACCELERATION

        self.speed = min(self.speed, self.max_speed)
        self.speed = max(self.speed, -self.max_speed / 2.0)

        if self.speed > 0:
            self.speed = max(0.0, self.speed - FRICTION)
        elif self.speed < 0:
            self.speed = min(0.0, self.speed + FRICTION)

        if self.speed != 0:
            flip = 1.0 if self.speed > 0 else -1.0
            if self.controls.left:
                self.angle += STEERING_RATE * flip
            if self.controls.right:
                self.angle -= STEERING_RATE * flip

        self.x -= math.sin(self.angle) * self.speed
        self.y -= math.cos(self.angle) * self.speed

    def _create_polygon(self) -> list[Point]:
        radius = math.hypot(self.width, self.height) / 2.0
        alpha = math.atan2(self.width, self.height)
        corners = (
            self.angle - alpha,
            self.angle + alpha,
            math.pi + self.angle - alpha,
            math.pi + self.angle + alpha,
        )
        return [Point(self.x - math.sin(a) * radius, self.y - math.cos(a) * radius) for a in corners]

    def _assess_damage(self, borders: Sequence[Segment], traffic: Sequence["Car"]) -> bool:
        for border in borders:
            if polygons_intersect(self.polygon, border):
                return True
        for other in traffic:
            if other is not self and polygons_intersect(self.polygon, other.polygon):
                return True
        return False
