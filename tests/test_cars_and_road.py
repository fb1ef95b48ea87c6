from __future__ import annotations

import numpy as np
import pytest

from agents.ai_car import AICar
from agents.base import ACCELERATION, FRICTION, STEERING_RATE, Controls
from agents.network import Level, NeuralNetwork, ShapeMismatchError
from agents.traffic_car import TrafficCar
from environment.highway import DEFAULT_TRAFFIC_LAYOUT, HighwayEnvironment
from environment.road import Road
from environment.sensor import SensorConfig


def _forward_only_brain(inputs: int = 5) -> NeuralNetwork:
    # zero weights leave only the negated biases: forward on, everything else off
    return NeuralNetwork([Level(weights=np.zeros((inputs, 4)), biases=np.array([-1.0, 1.0, 1.0, 1.0]))])


def test_road_lanes_and_borders() -> None:
    road = Road(x=126.0, width=252.0, lane_count=3)

    assert (road.left, road.right) == (0.0, 252.0)
    assert [road.lane_center(i) for i in range(3)] == pytest.approx([42.0, 126.0, 210.0])
    assert road.lane_center(7) == pytest.approx(210.0)
    assert road.lane_center(-1) == pytest.approx(42.0)
    assert road.lane_dividers() == pytest.approx([84.0, 168.0])
    assert len(road.borders) == 2
    assert all(start.x == end.x for start, end in road.borders)


def test_road_rejects_invalid_dimensions() -> None:
    with pytest.raises(ValueError):
        Road(x=0.0, width=0.0)
    with pytest.raises(ValueError):
        Road(x=0.0, width=100.0, lane_count=0)


def test_car_polygon_matches_body_size() -> None:
    car = TrafficCar(0.0, 0.0)

    xs = [p.x for p in car.polygon]
    ys = [p.y for p in car.polygon]
    assert len(car.polygon) == 4
    assert (min(xs), max(xs)) == pytest.approx((-15.0, 15.0))
    assert (min(ys), max(ys)) == pytest.approx((-25.0, 25.0))


def test_traffic_car_accelerates_up_the_road() -> None:
    road = Road(x=126.0, width=252.0)
    car = TrafficCar(126.0, 0.0, max_speed=2.0)

    car.update(road.borders)

    assert car.speed == pytest.approx(ACCELERATION - FRICTION)
    assert car.y == pytest.approx(-(ACCELERATION - FRICTION))
    assert car.fitness == pytest.approx(ACCELERATION - FRICTION)

    for _ in range(100):
        car.update(road.borders)
    assert 0.0 < car.speed <= car.max_speed
    assert not car.damaged


def test_reverse_speed_is_capped_at_half_max() -> None:
    road = Road(x=126.0, width=252.0)
    car = TrafficCar(126.0, 0.0, max_speed=3.0)
    car.controls = Controls(reverse=True)

    for _ in range(100):
        car.update(road.borders)

    assert -car.max_speed / 2.0 <= car.speed < 0.0
    assert car.y > 0.0
    assert car.fitness == 0.0


def test_steering_needs_motion_and_flips_in_reverse() -> None:
    road = Road(x=126.0, width=252.0)
    parked = TrafficCar(126.0, 0.0)
    parked.controls = Controls(left=True)
    parked.update(road.borders)
    assert parked.angle == 0.0

    driving = TrafficCar(126.0, 0.0)
    driving.controls = Controls(forward=True, left=True)
    driving.update(road.borders)
    assert driving.angle == pytest.approx(STEERING_RATE)

    reversing = TrafficCar(126.0, 0.0)
    reversing.controls = Controls(reverse=True, left=True)
    reversing.update(road.borders)
    assert reversing.angle == pytest.approx(-STEERING_RATE)


def test_touching_a_border_damages_and_freezes_the_car() -> None:
    road = Road(x=126.0, width=252.0)
    car = TrafficCar(road.left, 0.0)

    car.update(road.borders)
    assert car.damaged
    frozen = (car.x, car.y, car.speed)

    car.update(road.borders)
    assert (car.x, car.y, car.speed) == frozen


def test_ai_car_rejects_incompatible_brain() -> None:
    brain = NeuralNetwork.random([9, 6, 4], np.random.default_rng(0))

    with pytest.raises(ShapeMismatchError):
        AICar(126.0, 100.0, brain=brain, sensor_config=SensorConfig(ray_count=5))
    with pytest.raises(ShapeMismatchError):
        AICar(126.0, 100.0, brain=NeuralNetwork.random([5, 3], np.random.default_rng(0)), sensor_config=SensorConfig(ray_count=5))


def test_ai_car_drives_from_brain_outputs() -> None:
    road = Road(x=126.0, width=252.0)
    car = AICar(126.0, 100.0, brain=_forward_only_brain(), sensor_config=SensorConfig(ray_count=5))
    assert car.controllable

    car.update(road.borders, [])

    assert len(car.sensor.readings) == 5
    assert car.controls == Controls(forward=True)
    assert car.brain.levels[0].outputs.tolist() == [1.0, 0.0, 0.0, 0.0]

    for _ in range(10):
        car.update(road.borders, [])
    assert car.y < 100.0
    assert car.fitness == pytest.approx(100.0 - car.y)


def test_ai_car_senses_and_collides_with_traffic() -> None:
    road = Road(x=126.0, width=252.0)
    ahead = TrafficCar(126.0, 0.0)
    car = AICar(126.0, 100.0, brain=_forward_only_brain(), sensor_config=SensorConfig(ray_count=5))

    car.update(road.borders, [ahead])
    middle = car.sensor.readings[2]
    assert middle is not None
    assert middle.y == pytest.approx(25.0)

    blocked = TrafficCar(131.0, 90.0)
    crashing = AICar(126.0, 100.0, brain=_forward_only_brain(), sensor_config=SensorConfig(ray_count=5))
    crashing.update(road.borders, [blocked])
    assert crashing.damaged


def test_highway_reset_rebuilds_traffic() -> None:
    env = HighwayEnvironment(Road(x=126.0, width=252.0))
    first = list(env.traffic)

    assert len(first) == len(DEFAULT_TRAFFIC_LAYOUT)
    assert [car.car_id for car in first][:2] == ["traffic_0", "traffic_1"]
    assert env.spawn_point() == (126.0, 100.0)

    for _ in range(5):
        env.step()
    assert all(car.y < y for car, (_, y) in zip(env.traffic, DEFAULT_TRAFFIC_LAYOUT))
    assert not any(car.damaged for car in env.traffic)

    env.reset()
    assert all(new is not old for new, old in zip(env.traffic, first))
    assert [car.y for car in env.traffic] == [y for _, y in DEFAULT_TRAFFIC_LAYOUT]
