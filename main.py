"""Headless simulation runner for local validation."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from configs.loader import ConfigLoader, SimulationConfig
from core.deterministic_rng import DeterministicRNG
from data.brain_store import BrainStore
from data.logger import SimulationLogger
from engine.simulator import Simulator
from environment.highway import HighwayEnvironment
from environment.road import Road
from environment.sensor import SensorConfig
from evolution.controller import EvolutionController
from evolution.tiered import TieredMutationStrategy, build_tiers


def build_controller(
    config: SimulationConfig,
    store: BrainStore | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> EvolutionController:
    """Wire road, traffic, brain store and tiered strategy into a controller."""
    rng = DeterministicRNG(config.seed)
    road = Road(x=config.road_width / 2.0, width=config.road_width, lane_count=config.lane_count)
    environment = HighwayEnvironment(road, traffic_max_speed=config.traffic_max_speed)
    strategy = TieredMutationStrategy(build_tiers(config.tier_boundaries, config.tier_amounts))
    return EvolutionController(
        environment=environment,
        store=store if store is not None else BrainStore(config.brain_path),
        strategy=strategy,
        population_size=config.population_size,
        hidden_layers=config.hidden_layers,
        sensor_config=SensorConfig(
            ray_count=config.ray_count,
            ray_length=config.ray_length,
            ray_spread=config.ray_spread,
        ),
        ai_max_speed=config.ai_max_speed,
        restart_delay=config.restart_delay,
        rng=rng.stream("evolution"),
        clock=clock,
    )


def build_components(
    config: SimulationConfig,
    logger: SimulationLogger | None = None,
    store: BrainStore | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Simulator:
    """Build a simulator from a run configuration."""
    return Simulator(
        controller=build_controller(config, store=store, clock=clock),
        logger=logger,
        config=config.to_dict(),
        seed=config.seed,
        max_frames_per_generation=config.max_frames_per_generation,
    )


def main(config_path: str = "configs/default.yaml") -> None:
    """Load config, build components, and evolve for the configured generations."""
    logging.basicConfig(level=logging.INFO)
    config = ConfigLoader.load(config_path)
    logger = SimulationLogger(Path("simulation_metrics.db"))
    try:
        simulator = build_components(config=config, logger=logger)
        simulator.run(config.generations)
    finally:
        logger.close()


if __name__ == "__main__":
    main()
