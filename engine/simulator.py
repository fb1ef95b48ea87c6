"""Frame-driven simulation loop orchestrator."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Mapping

from core.render_state import RenderState, build_render_state
from data.logger import SimulationLogger
from evolution.controller import EvolutionController, GenerationPhase, GenerationReport


LOGGER = logging.getLogger(__name__)


class SimulatorState(str, enum.Enum):
    """Execution control states for the frame loop."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class SimulatorExecutionError(RuntimeError):
    """Raised when one simulator lifecycle phase fails."""


class Simulator:
    """Drives traffic, AI cars and the evolution controller one frame at a time.

    A tick is cooperative and never suspends halfway: traffic moves first, then
    every AI car senses, decides and moves, and only then does the controller
    read fitness and damage for the frame.
    """

    def __init__(
        self,
        controller: EvolutionController,
        logger: SimulationLogger | None = None,
        config: Mapping[str, Any] | None = None,
        seed: int | None = None,
        max_frames_per_generation: int | None = None,
    ) -> None:
        """Initialize simulator dependencies and start the first generation."""
        self.controller = controller
        self.environment = controller.environment
        self.max_frames_per_generation = max_frames_per_generation

        self.logger = logger
        self.config = dict(config or {})
        self.run_id: str | None = None
        if self.logger is not None:
            self.run_id = self.logger.start_run(config=self.config, seed=int(seed if seed is not None else 0))

        self.last_generation_metrics: dict[str, float] | None = None
        self.reports: list[GenerationReport] = []

        self._state = SimulatorState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._resume_event = threading.Event()

        self.controller.init()

    @property
    def generation(self) -> int:
        return self.controller.generation

    def tick(self) -> GenerationReport | None:
        """Run one frame; return a report if it closed a generation."""
        state = self.controller.state
        self._safe_call("environment.step", self.environment.step)

        borders = self.environment.borders
        traffic = state.traffic
        for car in state.population:
            try:
                car.update(borders, traffic)
            except Exception as exc:
                raise SimulatorExecutionError(f"Car '{car.car_id}' update failed: {exc}") from exc
        # frames spent waiting out the restart delay are not counted
        if state.phase is GenerationPhase.RUNNING:
            state.frame_index += 1

        report = self._safe_call("controller.observe", self.controller.observe)
        if report is not None:
            self.on_generation_end(report)
        return report

    def run_generation(self) -> GenerationReport:
        """Tick until the current generation ends.

        When ``max_frames_per_generation`` is reached first, the generation is
        closed immediately even if some cars are still driving.
        """
        while True:
            report = self._tick_capped()
            if report is not None:
                return report

    def _tick_capped(self) -> GenerationReport | None:
        report = self.tick()
        frame_cap = self.max_frames_per_generation
        if report is not None or frame_cap is None or self.controller.state.frame_index < frame_cap:
            return report
        LOGGER.info(
            "Generation %d hit the %d frame cap with %d cars still driving",
            self.controller.generation,
            frame_cap,
            self.controller.state.alive_count,
        )
        report = self._safe_call("controller.advance_generation", self.controller.advance_generation)
        self.on_generation_end(report)
        return report

    def run(self, generations: int) -> list[GenerationReport]:
        """Run whole generations, honoring pause and stop requests between frames."""
        if generations < 0:
            raise ValueError("generations must be non-negative")

        self._stop_event.clear()
        with self._state_lock:
            if self._state != SimulatorState.PAUSED:
                self._state = SimulatorState.RUNNING

        finished: list[GenerationReport] = []
        try:
            while len(finished) < generations and not self._stop_event.is_set():
                if self.control_state() == SimulatorState.PAUSED.value:
                    self._resume_event.wait(timeout=0.05)
                    self._resume_event.clear()
                    continue
                report = self._tick_capped()
                if report is not None:
                    finished.append(report)
        finally:
            with self._state_lock:
                if self._state != SimulatorState.STOPPED:
                    self._state = SimulatorState.IDLE
        return finished

    def control_state(self) -> str:
        """Return current execution control state."""
        with self._state_lock:
            return str(self._state.value)

    def pause(self) -> None:
        with self._state_lock:
            if self._state == SimulatorState.RUNNING:
                self._state = SimulatorState.PAUSED

    def resume(self) -> None:
        with self._state_lock:
            if self._state == SimulatorState.PAUSED:
                self._state = SimulatorState.RUNNING
        self._resume_event.set()

    def stop(self) -> None:
        self._stop_event.set()
        with self._state_lock:
            self._state = SimulatorState.STOPPED
        self._resume_event.set()

    def restart(self) -> None:
        """Throw away the running generation and reseed from the stored brain."""
        self.controller.reset()

    def snapshot(self) -> RenderState:
        """Immutable view of the current frame for a renderer."""
        return build_render_state(self.controller.state, self.environment.road)

    def on_generation_end(self, report: GenerationReport) -> None:
        """Record a finished generation and persist it if a logger is set."""
        self.reports.append(report)
        self.last_generation_metrics = report.to_metrics()
        if self.logger is None or self.run_id is None:
            return
        self._safe_call("logger.log_report", self.logger.log_report, self.run_id, report)

    @staticmethod
    def _safe_call(label: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            raise SimulatorExecutionError(f"{label} failed: {exc}") from exc
