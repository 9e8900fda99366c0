"""SQLite-backed usage log storage."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from verse_coach.usage.models import UsageLog

DEFAULT_DB_PATH = Path.home() / ".verse-coach" / "usage.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS usage_logs (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    command TEXT NOT NULL,
    document_chars INTEGER NOT NULL DEFAULT 0,
    accepted INTEGER NOT NULL DEFAULT 0,
    dismissed INTEGER NOT NULL DEFAULT 0,
    resuggested INTEGER NOT NULL DEFAULT 0,
    elapsed_seconds REAL NOT NULL DEFAULT 0.0,
    total_input_tokens INTEGER NOT NULL DEFAULT 0,
    total_output_tokens INTEGER NOT NULL DEFAULT 0,
    oracle_calls INTEGER NOT NULL DEFAULT 0,
    estimated_cost_usd REAL NOT NULL DEFAULT 0.0,
    success INTEGER NOT NULL DEFAULT 1,
    error_message TEXT
)
"""

_FIELDS = tuple(UsageLog.model_fields)


class UsageStore:
    """Append-only log of CLI review runs (WAL mode)."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(_SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = sqlite3.Row
        return conn

    def save_log(self, log: UsageLog) -> None:
        row = log.model_dump(mode="json")
        row["success"] = int(log.success)
        placeholders = ", ".join(f":{name}" for name in _FIELDS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO usage_logs ({', '.join(_FIELDS)}) VALUES ({placeholders})",
                row,
            )

    def get_logs(self, session_id: str | None = None, limit: int = 50) -> list[UsageLog]:
        """Newest first, optionally for one session only."""
        query = f"SELECT {', '.join(_FIELDS)} FROM usage_logs"
        params: list = []
        if session_id is not None:
            query += " WHERE session_id = ?"
            params.append(session_id)
        query += " ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [UsageLog.model_validate(dict(row)) for row in rows]

    def get_summary(self, command: str | None = None) -> dict:
        """Totals across all logs, or across one command's logs."""
        query = """SELECT
                       COUNT(*) AS runs,
                       SUM(accepted) AS accepted,
                       SUM(dismissed) AS dismissed,
                       SUM(resuggested) AS resuggested,
                       SUM(total_input_tokens) AS input_tokens,
                       SUM(total_output_tokens) AS output_tokens,
                       SUM(estimated_cost_usd) AS cost,
                       SUM(success) AS succeeded
                   FROM usage_logs"""
        params: tuple = ()
        if command is not None:
            query += " WHERE command = ?"
            params = (command,)
        with self._connect() as conn:
            row = conn.execute(query, params).fetchone()

        runs = row["runs"] or 0
        return {
            "total_runs": runs,
            "total_accepted": row["accepted"] or 0,
            "total_dismissed": row["dismissed"] or 0,
            "total_resuggested": row["resuggested"] or 0,
            "total_input_tokens": row["input_tokens"] or 0,
            "total_output_tokens": row["output_tokens"] or 0,
            "total_cost_usd": row["cost"] or 0.0,
            "success_rate": (row["succeeded"] / runs * 100) if runs else 0.0,
        }
