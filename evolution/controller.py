"""Generation lifecycle: detect a finished generation, persist the elite, reseed."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from agents.ai_car import AICar
from agents.base import Car
from agents.network import CONTROL_OUTPUTS, NeuralNetwork
from data.brain_store import BrainStore, DeserializationError, deserialize_brain, serialize_brain
from environment.base import Environment
from environment.sensor import SensorConfig
from evolution.base import EvolutionStrategy
from evolution.tiered import select_best


LOGGER = logging.getLogger(__name__)


class GenerationPhase(str, enum.Enum):
    """Lifecycle phases of one generation."""

    RUNNING = "running"
    ALL_DAMAGED = "all_damaged"
    SEEDING = "seeding"


class RestartTimer:
    """Cancellable one-shot deadline polled from the frame loop.

    Scheduling while a deadline is already pending keeps the original
    deadline, so a restart can never be queued twice.
    """

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = max(0.0, float(delay))
        self.clock = clock
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def schedule(self) -> bool:
        """Start the countdown; return ``False`` if one is already pending."""
        if self._deadline is not None:
            return False
        self._deadline = self.clock() + self.delay
        return True

    def cancel(self) -> None:
        self._deadline = None

    def due(self) -> bool:
        return self._deadline is not None and self.clock() >= self._deadline


@dataclass
class SimulationState:
    """Everything that changes wholesale at a generation boundary."""

    generation: int
    population: list[AICar]
    traffic: Sequence[Car]
    restart: RestartTimer
    best: AICar | None = None
    phase: GenerationPhase = GenerationPhase.RUNNING
    frame_index: int = 0
    seeded_from_baseline: bool = False

    @property
    def alive_count(self) -> int:
        return sum(1 for car in self.population if not car.damaged)

    @property
    def all_damaged(self) -> bool:
        return all(car.damaged for car in self.population if car.controllable)


@dataclass(frozen=True)
class GenerationReport:
    """Summary of a finished generation.

    ``frames`` counts frames up to the one where the last car was damaged;
    frames spent waiting out the restart delay are excluded, so the value is
    reproducible for a given seed.
    """

    generation: int
    frames: int
    best_fitness: float
    mean_fitness: float
    diversity: float
    seeded_from_baseline: bool = False

    def to_metrics(self) -> dict[str, float]:
        return {
            "best_fitness": self.best_fitness,
            "mean_fitness": self.mean_fitness,
            "frames": float(self.frames),
            "diversity": self.diversity,
        }


class EvolutionController:
    """Owns the population and turns each finished generation into the next.

    Lifecycle per generation::

        RUNNING --(every AI car damaged)--> ALL_DAMAGED
        ALL_DAMAGED --(restart delay elapsed)--> SEEDING
        SEEDING --(elite saved, population rebuilt)--> RUNNING

    The new state is built completely before it replaces the old one, so
    readers between frames never see a half-swapped population.
    """

    def __init__(
        self,
        environment: Environment,
        store: BrainStore,
        strategy: EvolutionStrategy,
        population_size: int,
        hidden_layers: Sequence[int] = (6,),
        sensor_config: SensorConfig | None = None,
        ai_max_speed: float = 3.5,
        restart_delay: float = 0.8,
        rng: np.random.Generator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if population_size <= 0:
            raise ValueError("population_size must be > 0")
        self.environment = environment
        self.store = store
        self.strategy = strategy
        self.population_size = int(population_size)
        self.sensor_config = sensor_config or SensorConfig()
        self.neuron_counts = [self.sensor_config.ray_count, *[int(n) for n in hidden_layers], CONTROL_OUTPUTS]
        self.ai_max_speed = float(ai_max_speed)
        self.restart_delay = float(restart_delay)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock
        self._state: SimulationState | None = None

    @property
    def state(self) -> SimulationState:
        if self._state is None:
            raise RuntimeError("EvolutionController.init() has not been called.")
        return self._state

    @property
    def generation(self) -> int:
        return self.state.generation

    def init(self) -> SimulationState:
        """Build generation 1 from the stored brain, or from scratch."""
        self._state = self._build_state(generation=1)
        return self._state

    def reset(self) -> SimulationState:
        """Drop the running generation and start over at generation 1."""
        if self._state is not None:
            self._state.restart.cancel()
        return self.init()

    def observe(self) -> GenerationReport | None:
        """Inspect the population after a frame and advance when due.

        Returns the finished generation's report when a new generation was
        seeded during this call.
        """
        state = self.state
        best = select_best(state.population)
        if best is not None:
            state.best = best

        if state.phase is GenerationPhase.RUNNING and state.all_damaged:
            state.phase = GenerationPhase.ALL_DAMAGED
            state.restart.schedule()
            LOGGER.info("Generation %d: all cars damaged", state.generation)
        elif state.phase is GenerationPhase.ALL_DAMAGED and not state.all_damaged:
            state.restart.cancel()
            state.phase = GenerationPhase.RUNNING

        if state.phase is GenerationPhase.ALL_DAMAGED and state.restart.due():
            return self.advance_generation()
        return None

    def advance_generation(self) -> GenerationReport:
        """Persist the current elite and swap in a freshly seeded population."""
        state = self.state
        state.restart.cancel()
        state.phase = GenerationPhase.SEEDING
        if state.best is None:
            state.best = select_best(state.population)

        report = self._report(state)
        self.save_best()
        next_state = self._build_state(generation=state.generation + 1)
        self._state = next_state
        LOGGER.info(
            "Generation %d finished after %d frames (best fitness %.1f); starting generation %d",
            report.generation,
            report.frames,
            report.best_fitness,
            next_state.generation,
        )
        return report

    def save_best(self) -> bool:
        """Store the best car's brain; return ``False`` when there is none."""
        best = self.state.best
        if best is None or best.brain is None:
            return False
        self.store.save(serialize_brain(best.brain))
        return True

    def discard(self) -> None:
        """Forget the stored brain; the next ``init`` starts from scratch."""
        self.store.clear()

    def random_brain(self) -> NeuralNetwork:
        return NeuralNetwork.random(self.neuron_counts, self.rng)

    def load_baseline(self) -> NeuralNetwork | None:
        """Return the stored brain, or ``None`` if absent or unusable."""
        try:
            payload = self.store.load()
            if payload is None:
                return None
            brain = deserialize_brain(payload)
        except DeserializationError as exc:
            LOGGER.warning("Ignoring stored brain: %s", exc)
            return None

        if brain.input_count != self.sensor_config.ray_count or brain.output_count != CONTROL_OUTPUTS:
            LOGGER.warning(
                "Ignoring stored brain: layout %s does not fit %d rays and %d controls",
                brain.neuron_counts,
                self.sensor_config.ray_count,
                CONTROL_OUTPUTS,
            )
            return None
        return brain

    def _build_state(self, generation: int) -> SimulationState:
        baseline = self.load_baseline()
        brains = self.strategy.seed_population(baseline, self.population_size, self.rng, self.random_brain)
        if len(brains) != self.population_size:
            raise ValueError("Evolution strategy must produce exactly population_size brains.")

        self.environment.reset()
        x, y = self.environment.spawn_point()
        population = [
            AICar(
                x,
                y,
                brain=brain,
                sensor_config=self.sensor_config,
                max_speed=self.ai_max_speed,
                car_id=f"car_{index}",
            )
            for index, brain in enumerate(brains)
        ]
        return SimulationState(
            generation=generation,
            population=population,
            traffic=self.environment.traffic,
            restart=RestartTimer(self.restart_delay, self.clock),
            best=population[0],
            seeded_from_baseline=baseline is not None,
        )

    @staticmethod
    def _report(state: SimulationState) -> GenerationReport:
        fitnesses = [float(car.fitness) for car in state.population]
        best = state.best
        diversity = 0.0
        if best is not None and best.brain is not None and len(state.population) > 1:
            distances = [
                best.brain.distance(car.brain)
                for car in state.population
                if car is not best and car.brain is not None
            ]
            diversity = float(sum(distances) / len(distances)) if distances else 0.0
        return GenerationReport(
            generation=state.generation,
            frames=state.frame_index,
            best_fitness=float(best.fitness) if best is not None else 0.0,
            mean_fitness=float(sum(fitnesses) / len(fitnesses)) if fitnesses else 0.0,
            diversity=diversity,
            seeded_from_baseline=state.seeded_from_baseline,
        )
