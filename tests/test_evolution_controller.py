from __future__ import annotations

import logging

import numpy as np
import pytest

from agents.network import NeuralNetwork
from data.brain_store import BrainStore, serialize_brain
from environment.highway import HighwayEnvironment
from environment.road import Road
from environment.sensor import SensorConfig
from evolution.controller import EvolutionController, GenerationPhase, RestartTimer
from evolution.tiered import TieredMutationStrategy


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _controller(tmp_path, clock: FakeClock, population_size: int = 6, delay: float = 0.8) -> EvolutionController:
    road = Road(x=126.0, width=252.0)
    return EvolutionController(
        environment=HighwayEnvironment(road),
        store=BrainStore(tmp_path / "best_brain.json"),
        strategy=TieredMutationStrategy(),
        population_size=population_size,
        hidden_layers=(6,),
        sensor_config=SensorConfig(ray_count=5),
        restart_delay=delay,
        rng=np.random.default_rng(3),
        clock=clock,
    )


def _crash_everyone(controller: EvolutionController) -> None:
    for car in controller.state.population:
        car.damaged = True


def test_restart_timer_is_one_shot_until_cancelled() -> None:
    clock = FakeClock()
    timer = RestartTimer(0.8, clock)

    assert timer.schedule() is True
    clock.now = 0.5
    assert timer.schedule() is False
    assert not timer.due()
    clock.now = 0.8
    assert timer.due()

    timer.cancel()
    assert not timer.pending
    assert not timer.due()


def test_state_requires_init(tmp_path) -> None:
    controller = _controller(tmp_path, FakeClock())

    with pytest.raises(RuntimeError):
        _ = controller.state


def test_first_generation_starts_from_scratch(tmp_path) -> None:
    controller = _controller(tmp_path, FakeClock())

    state = controller.init()

    assert state.generation == 1
    assert state.phase is GenerationPhase.RUNNING
    assert not state.seeded_from_baseline
    assert len(state.population) == 6
    assert [car.car_id for car in state.population] == [f"car_{i}" for i in range(6)]
    assert all(car.brain.neuron_counts == [5, 6, 4] for car in state.population)
    assert len(state.traffic) > 0


def test_generation_advances_once_after_restart_delay(tmp_path) -> None:
    clock = FakeClock()
    controller = _controller(tmp_path, clock)
    controller.init()
    population = controller.state.population
    population[2].fitness = 42.0
    winner_brain = population[2].brain.clone()

    _crash_everyone(controller)
    assert controller.observe() is None
    assert controller.state.phase is GenerationPhase.ALL_DAMAGED
    assert controller.state.best is population[2]

    clock.now = 0.5
    assert controller.observe() is None
    assert controller.generation == 1

    clock.now = 0.9
    report = controller.observe()
    assert report is not None
    assert report.generation == 1
    assert report.best_fitness == 42.0
    assert report.mean_fitness == pytest.approx(42.0 / 6)
    assert controller.generation == 2

    next_state = controller.state
    assert next_state.population is not population
    assert next_state.phase is GenerationPhase.RUNNING
    assert next_state.seeded_from_baseline
    assert next_state.population[0].brain.distance(winner_brain) == 0.0
    assert (tmp_path / "best_brain.json").exists()

    clock.now = 5.0
    assert controller.observe() is None
    assert controller.generation == 2


def test_revived_population_cancels_pending_restart(tmp_path) -> None:
    clock = FakeClock()
    controller = _controller(tmp_path, clock)
    controller.init()

    _crash_everyone(controller)
    controller.observe()
    controller.state.population[0].damaged = False
    controller.observe()

    assert controller.state.phase is GenerationPhase.RUNNING
    assert not controller.state.restart.pending
    clock.now = 10.0
    assert controller.observe() is None
    assert controller.generation == 1


def test_zero_delay_advances_on_the_same_frame(tmp_path) -> None:
    controller = _controller(tmp_path, FakeClock(), delay=0.0)
    controller.init()

    _crash_everyone(controller)

    assert controller.observe() is not None
    assert controller.generation == 2


@pytest.mark.parametrize(
    "content",
    [b'{"levels": "broken"}', b"{not json", b"\xff\xfe\x00garbage"],
)
def test_unusable_stored_brain_falls_back_to_random(tmp_path, caplog, content) -> None:
    (tmp_path / "best_brain.json").write_bytes(content)
    controller = _controller(tmp_path, FakeClock())

    with caplog.at_level(logging.WARNING, logger="evolution.controller"):
        state = controller.init()

    assert not state.seeded_from_baseline
    assert len(state.population) == 6
    assert "Ignoring stored brain" in caplog.text


def test_stored_brain_with_wrong_layout_is_ignored(tmp_path) -> None:
    store = BrainStore(tmp_path / "best_brain.json")
    store.save(serialize_brain(NeuralNetwork.random([9, 6, 4], np.random.default_rng(0))))
    controller = _controller(tmp_path, FakeClock())

    assert controller.load_baseline() is None
    assert not controller.init().seeded_from_baseline


def test_stored_brain_seeds_elite(tmp_path) -> None:
    stored = NeuralNetwork.random([5, 6, 4], np.random.default_rng(0))
    BrainStore(tmp_path / "best_brain.json").save(serialize_brain(stored))
    controller = _controller(tmp_path, FakeClock())

    state = controller.init()

    assert state.seeded_from_baseline
    assert state.population[0].brain.distance(stored) == 0.0
    assert state.population[-1].brain.distance(stored) > 0.0


def test_reset_and_discard(tmp_path) -> None:
    controller = _controller(tmp_path, FakeClock(), delay=0.0)
    controller.init()
    _crash_everyone(controller)
    controller.observe()
    assert controller.generation == 2
    assert (tmp_path / "best_brain.json").exists()

    controller.discard()
    state = controller.reset()

    assert not (tmp_path / "best_brain.json").exists()
    assert state.generation == 1
    assert not state.seeded_from_baseline


def test_report_diversity_measures_distance_from_elite(tmp_path) -> None:
    stored = NeuralNetwork.random([5, 6, 4], np.random.default_rng(0))
    BrainStore(tmp_path / "best_brain.json").save(serialize_brain(stored))
    controller = _controller(tmp_path, FakeClock(), delay=0.0)
    controller.init()

    _crash_everyone(controller)
    report = controller.observe()

    assert report is not None
    assert report.seeded_from_baseline
    assert report.diversity > 0.0
    assert set(report.to_metrics()) == {"best_fitness", "mean_fitness", "frames", "diversity"}
