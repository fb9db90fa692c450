from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import duckdb
import pandas as pd

from reqprof.config import RunConfig
from reqprof.metrics import ProfileReport


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    host TEXT,
                    path TEXT,
                    config_json TEXT,
                    notes TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS profile_summary (
                    run_id TEXT,
                    request_count INTEGER,
                    min_ms BIGINT,
                    max_ms BIGINT,
                    avg_ms DOUBLE,
                    median_ms DOUBLE,
                    p95_ms DOUBLE,
                    p99_ms DOUBLE,
                    success_rate DOUBLE,
                    success_count INTEGER,
                    failure_count INTEGER,
                    unknown_count INTEGER,
                    min_bytes BIGINT,
                    max_bytes BIGINT,
                    error_codes TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS latencies (
                    run_id TEXT,
                    seq INTEGER,
                    latency_ms BIGINT
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_run(self, config: RunConfig, run_id: str, report: ProfileReport) -> None:
        config_json = json.dumps(config.to_metadata())
        created_at = config.created_at.replace(tzinfo=None)
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?, ?, ?)",
                [run_id, created_at, config.spec.host, config.spec.path, config_json, config.notes],
            )
            con.execute(
                "INSERT INTO profile_summary VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    run_id,
                    report.count,
                    report.min_ms,
                    report.max_ms,
                    report.avg_ms,
                    report.median_ms,
                    report.p95_ms,
                    report.p99_ms,
                    report.success_rate,
                    report.success_count,
                    report.failure_count,
                    report.unknown_count,
                    report.min_bytes,
                    report.max_bytes,
                    json.dumps(list(report.error_codes)),
                ],
            )
            latency_df = pd.DataFrame(
                {
                    "run_id": [run_id] * len(report.sorted_latencies),
                    "seq": range(len(report.sorted_latencies)),
                    "latency_ms": list(report.sorted_latencies),
                }
            )
            if not latency_df.empty:
                con.execute("INSERT INTO latencies SELECT * FROM latency_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT run_id, created_at, host, path, notes FROM run_meta ORDER BY created_at DESC"
            ).fetchdf()

    def load_run_meta(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_summary(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM profile_summary WHERE run_id = ?",
                [run_id],
            ).fetchdf()

    def load_latencies(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM latencies WHERE run_id = ? ORDER BY seq",
                [run_id],
            ).fetchdf()
