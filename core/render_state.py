"""Immutable frame snapshots handed to an external renderer."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from agents.base import Car
from environment.road import Road

if TYPE_CHECKING:
    from evolution.controller import SimulationState


XY = tuple[float, float]


@dataclass(frozen=True)
class CarState:
    """Pose and outline of one car."""

    id: str
    position: XY
    angle: float
    polygon: list[XY]
    damaged: bool
    fitness: float


@dataclass(frozen=True)
class SensorState:
    """Rays and nearest hits of the highlighted car."""

    rays: list[tuple[XY, XY]]
    readings: list[tuple[float, float, float] | None]


@dataclass(frozen=True)
class LevelState:
    """Last forward pass of one network level, for a network diagram."""

    inputs: list[float]
    outputs: list[float]
    weights: list[list[float]]
    biases: list[float]


@dataclass(frozen=True)
class RoadState:
    left: float
    right: float
    lane_dividers: list[float]


@dataclass(frozen=True)
class RenderState:
    """Top-level immutable render frame emitted by the simulator."""

    generation: int
    frame_index: int
    phase: str
    alive: int
    best_fitness: float
    road: RoadState
    cars: list[CarState]
    traffic: list[CarState]
    best_car_id: str | None = None
    best_sensor: SensorState | None = None
    best_brain: list[LevelState] = field(default_factory=list)
    timestamp: float = 0.0


def _car_state(car: Car) -> CarState:
    return CarState(
        id=car.car_id,
        position=(car.x, car.y),
        angle=car.angle,
        polygon=[(p.x, p.y) for p in car.polygon],
        damaged=car.damaged,
        fitness=float(car.fitness),
    )


def _sensor_state(car: Car) -> SensorState | None:
    if car.sensor is None:
        return None
    return SensorState(
        rays=[((start.x, start.y), (end.x, end.y)) for start, end in car.sensor.rays],
        readings=[
            None if reading is None else (reading.x, reading.y, reading.offset)
            for reading in car.sensor.readings
        ],
    )


def _brain_state(car: Car) -> list[LevelState]:
    if car.brain is None:
        return []
    return [
        LevelState(
            inputs=level.inputs.tolist(),
            outputs=level.outputs.tolist(),
            weights=level.weights.tolist(),
            biases=level.biases.tolist(),
        )
        for level in car.brain.levels
    ]


def build_render_state(state: "SimulationState", road: Road) -> RenderState:
    """Snapshot ``state`` so a renderer can draw it without touching live objects."""
    best = state.best
    return RenderState(
        generation=state.generation,
        frame_index=state.frame_index,
        phase=state.phase.value,
        alive=state.alive_count,
        best_fitness=float(best.fitness) if best is not None else 0.0,
        road=RoadState(left=road.left, right=road.right, lane_dividers=road.lane_dividers()),
        cars=[_car_state(car) for car in state.population],
        traffic=[_car_state(car) for car in state.traffic],
        best_car_id=best.car_id if best is not None else None,
        best_sensor=_sensor_state(best) if best is not None else None,
        best_brain=_brain_state(best) if best is not None else [],
        timestamp=time.time(),
    )
