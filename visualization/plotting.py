"""Plot utilities for persisted generation metrics."""

from __future__ import annotations

from pathlib import Path

from data.logger import SimulationLogger


def plot_run(db_path: str | Path, run_id: str, output_path: str | Path) -> Path:
    """Render fitness and diversity curves for one run from SQLite logs."""
    logger = SimulationLogger(db_path)
    try:
        rows = logger.fetch_reports(run_id)
    finally:
        logger.close()
    if not rows:
        raise ValueError(f"No generation metrics recorded for run '{run_id}'.")

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    generations = [int(row["generation"]) for row in rows]
    best_fitness = [float(row["best_fitness"]) for row in rows]
    mean_fitness = [float(row["mean_fitness"]) for row in rows]
    diversity = [float(row["diversity"]) for row in rows]

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(8, 6), sharex=True)
    ax1.plot(generations, best_fitness, label="best_fitness")
    ax1.plot(generations, mean_fitness, label="mean_fitness")
    ax1.set_ylabel("distance travelled")
    ax1.legend()

    ax2.plot(generations, diversity, label="diversity", color="tab:green")
    ax2.set_ylabel("distance to elite")
    ax2.set_xlabel("generation")
    ax2.legend()

    fig.tight_layout()
    fig.savefig(output)
    plt.close(fig)
    return output
