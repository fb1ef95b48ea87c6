"""SQLite store of runs and their per-generation reports."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from evolution.controller import GenerationReport


_SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    run_id TEXT PRIMARY KEY,
    seed INTEGER NOT NULL,
    config_json TEXT NOT NULL,
    started_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS generation_reports (
    run_id TEXT NOT NULL REFERENCES runs (run_id) ON DELETE CASCADE,
    generation INTEGER NOT NULL,
    frames INTEGER NOT NULL,
    best_fitness REAL NOT NULL,
    mean_fitness REAL NOT NULL,
    diversity REAL NOT NULL,
    seeded_from_baseline INTEGER NOT NULL,
    PRIMARY KEY (run_id, generation)
);
"""


class SimulationLogger:
    """Record one row per finished generation, grouped by run.

    A run is opened with ``start_run``; every ``GenerationReport`` the
    simulator produces is then written with ``log_report``. Re-logging the
    same generation number replaces the earlier row.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.connection = sqlite3.connect(self.db_path)
        self.connection.row_factory = sqlite3.Row
        with self.connection:
            self.connection.executescript(_SCHEMA)

    def close(self) -> None:
        self.connection.close()

    def start_run(self, config: Mapping[str, Any], seed: int) -> str:
        """Open a run for ``config`` and return its id."""
        run_id = uuid.uuid4().hex[:16]
        with self.connection:
            self.connection.execute(
                "INSERT INTO runs (run_id, seed, config_json) VALUES (?, ?, ?)",
                (run_id, int(seed), json.dumps(dict(config), sort_keys=True)),
            )
        return run_id

    def log_report(self, run_id: str, report: "GenerationReport") -> None:
        with self.connection:
            self.connection.execute(
                "INSERT OR REPLACE INTO generation_reports VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    run_id,
                    report.generation,
                    report.frames,
                    report.best_fitness,
                    report.mean_fitness,
                    report.diversity,
                    int(report.seeded_from_baseline),
                ),
            )

    def fetch_reports(self, run_id: str) -> list[dict[str, Any]]:
        """Return a run's generation rows in generation order."""
        rows = self.connection.execute(
            """
            SELECT generation, frames, best_fitness, mean_fitness, diversity, seeded_from_baseline
            FROM generation_reports
            WHERE run_id = ?
            ORDER BY generation
            """,
            (run_id,),
        ).fetchall()
        reports = []
        for row in rows:
            report = dict(row)
            report["seeded_from_baseline"] = bool(report["seeded_from_baseline"])
            reports.append(report)
        return reports

    def latest_run_id(self) -> str | None:
        row = self.connection.execute(
            "SELECT run_id FROM runs ORDER BY started_at DESC, rowid DESC LIMIT 1"
        ).fetchone()
        return str(row[0]) if row is not None else None
