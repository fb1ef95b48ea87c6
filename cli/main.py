"""Command-line entry points for running, plotting and managing the stored brain."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

# Allow `python cli/main.py ...` execution from IDEs by adding repo root to sys.path.
if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from configs.loader import ConfigLoader, SimulationConfig
from data.brain_store import BrainStore, DeserializationError, deserialize_brain
from data.logger import SimulationLogger
from main import build_components
from visualization.plotting import plot_run


def _run_single(config: SimulationConfig, db_path: Path, generations: int) -> str:
    logger = SimulationLogger(db_path)
    run_id: str | None = None
    try:
        simulator = build_components(config=config, logger=logger)
        simulator.run(generations)
        run_id = simulator.run_id
    finally:
        logger.close()
    if run_id is None:
        raise RuntimeError("Expected run id when logger is configured.")
    return run_id


def _inspect(config: SimulationConfig) -> int:
    store = BrainStore(config.brain_path)
    try:
        payload = store.load()
        if payload is None:
            print(f"No brain stored at {store.path}")
            return 1
        brain = deserialize_brain(payload)
    except DeserializationError as exc:
        print(f"Stored brain at {store.path} is unusable: {exc}")
        return 1
    print(" -> ".join(str(width) for width in brain.neuron_counts))
    return 0


def run_cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="autodrive")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run")
    run_cmd.add_argument("--config", default="configs/default.yaml")
    run_cmd.add_argument("--db", default="simulation_metrics.db")
    run_cmd.add_argument("--generations", type=int, default=None)

    plot_cmd = sub.add_parser("plot")
    plot_cmd.add_argument("--run", required=True)
    plot_cmd.add_argument("--db", default="simulation_metrics.db")
    plot_cmd.add_argument("--out", default="artifacts/fitness.png")

    discard_cmd = sub.add_parser("discard")
    discard_cmd.add_argument("--config", default="configs/default.yaml")

    inspect_cmd = sub.add_parser("inspect")
    inspect_cmd.add_argument("--config", default="configs/default.yaml")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    if args.command == "run":
        config = ConfigLoader.load(args.config)
        generations = config.generations if args.generations is None else int(args.generations)
        run_id = _run_single(config, Path(args.db), generations)
        print(run_id)
        return 0

    if args.command == "plot":
        path = plot_run(args.db, args.run, args.out)
        print(path)
        return 0

    if args.command == "discard":
        config = ConfigLoader.load(args.config)
        BrainStore(config.brain_path).clear()
        return 0

    if args.command == "inspect":
        return _inspect(ConfigLoader.load(args.config))

    return 1


if __name__ == "__main__":
    raise SystemExit(run_cli())
