"""Tests for the SQLite run logger and simulator hook integration."""

from __future__ import annotations

import sqlite3

from configs.loader import build_config
from data.brain_store import BrainStore
from data.logger import SimulationLogger
from evolution.controller import GenerationReport
from main import build_components


def _report(generation: int, best: float = 120.0, seeded: bool = False) -> GenerationReport:
    return GenerationReport(
        generation=generation,
        frames=240,
        best_fitness=best,
        mean_fitness=30.0,
        diversity=0.2,
        seeded_from_baseline=seeded,
    )


def test_logger_persists_runs_and_reports(tmp_path) -> None:
    db_path = tmp_path / "metrics.db"
    logger = SimulationLogger(db_path)

    run_id = logger.start_run(config={"population_size": 2, "generations": 1}, seed=42)
    logger.log_report(run_id, _report(2, seeded=True))
    logger.log_report(run_id, _report(1))
    assert logger.latest_run_id() == run_id
    rows = logger.fetch_reports(run_id)
    logger.close()

    assert rows == [
        {
            "generation": 1,
            "frames": 240,
            "best_fitness": 120.0,
            "mean_fitness": 30.0,
            "diversity": 0.2,
            "seeded_from_baseline": False,
        },
        {
            "generation": 2,
            "frames": 240,
            "best_fitness": 120.0,
            "mean_fitness": 30.0,
            "diversity": 0.2,
            "seeded_from_baseline": True,
        },
    ]

    conn = sqlite3.connect(db_path)
    seed, config_json = conn.execute("SELECT seed, config_json FROM runs").fetchone()
    conn.close()

    assert seed == 42
    assert config_json == '{"generations": 1, "population_size": 2}'


def test_relogging_a_generation_replaces_it(tmp_path) -> None:
    logger = SimulationLogger(tmp_path / "metrics.db")
    try:
        run_id = logger.start_run(config={}, seed=0)
        logger.log_report(run_id, _report(1, best=5.0))
        logger.log_report(run_id, _report(1, best=9.0))

        rows = logger.fetch_reports(run_id)
    finally:
        logger.close()

    assert [row["best_fitness"] for row in rows] == [9.0]


def test_reports_are_kept_per_run(tmp_path) -> None:
    logger = SimulationLogger(tmp_path / "metrics.db")
    try:
        first = logger.start_run(config={}, seed=1)
        second = logger.start_run(config={}, seed=2)
        logger.log_report(first, _report(1))

        assert first != second
        assert logger.latest_run_id() == second
        assert logger.fetch_reports(second) == []
        assert len(logger.fetch_reports(first)) == 1
    finally:
        logger.close()


def test_empty_database_has_no_latest_run(tmp_path) -> None:
    logger = SimulationLogger(tmp_path / "nested" / "empty.db")
    try:
        assert logger.latest_run_id() is None
        assert logger.fetch_reports("missing") == []
    finally:
        logger.close()


def test_simulator_on_generation_end_logs_report(tmp_path) -> None:
    db_path = tmp_path / "sim.db"
    logger = SimulationLogger(db_path)
    config = build_config({"population_size": 2, "generations": 1, "seed": 7, "restart_delay": 0})
    simulator = build_components(config, logger=logger, store=BrainStore(tmp_path / "brain.json"))

    simulator.on_generation_end(
        GenerationReport(generation=3, frames=90, best_fitness=12.5, mean_fitness=6.0, diversity=0.1)
    )
    logger.close()

    conn = sqlite3.connect(db_path)
    row = conn.execute(
        "SELECT generation, frames, best_fitness, mean_fitness, diversity, seeded_from_baseline"
        " FROM generation_reports"
    ).fetchone()
    conn.close()

    assert row == (3, 90, 12.5, 6.0, 0.1, 0)
    assert simulator.last_generation_metrics == {
        "best_fitness": 12.5,
        "mean_fitness": 6.0,
        "frames": 90.0,
        "diversity": 0.1,
    }
