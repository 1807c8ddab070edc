from __future__ import annotations

import sqlite3
from typing import List, Optional

from db.repos._store_errors import store_errors
from models.run_record import RunRecord, RunStats

_STAT_COLUMNS = list(RunStats.model_fields)


def _row_to_run(row: sqlite3.Row) -> RunRecord:
    return RunRecord(
        id=row["id"],
        run_type=row["run_type"],
        status=row["status"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
        stats=RunStats(**{col: row[col] for col in _STAT_COLUMNS}),
        error_message=row["error_message"],
        user_id=row["user_id"],
    )


class RunsRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create(self, run_type: str, user_id: str, started_at: str) -> RunRecord:
        with store_errors("run insert", self.conn):
            cur = self.conn.cursor()
            cur.execute(
                "INSERT INTO etl_runs (user_id, run_type, status, started_at) VALUES (?, ?, 'running', ?) RETURNING id;",
                (user_id, run_type, started_at),
            )
            run_id = int(cur.fetchone()[0])
            self.conn.commit()
        return RunRecord(id=run_id, run_type=run_type, status="running", started_at=started_at, user_id=user_id)

    def finalize(
        self,
        run_id: int,
        *,
        status: str,
        completed_at: str,
        stats: RunStats,
        error_message: Optional[str] = None,
    ) -> bool:
        """Single terminal write. Only a 'running' row transitions; returns False otherwise."""
        assignments = ", ".join(f"{col} = ?" for col in _STAT_COLUMNS)
        values = [getattr(stats, col) for col in _STAT_COLUMNS]
        with store_errors("run finalize", self.conn):
            cur = self.conn.execute(
                f"UPDATE etl_runs SET status = ?, completed_at = ?, error_message = ?, {assignments} "
                "WHERE id = ? AND status = 'running';",
                (status, completed_at, error_message, *values, run_id),
            )
            self.conn.commit()
        return cur.rowcount == 1

    def get(self, run_id: int) -> Optional[RunRecord]:
        with store_errors("run lookup"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute("SELECT * FROM etl_runs WHERE id = ?", (run_id,))
            row = cur.fetchone()
        return _row_to_run(row) if row else None

    def list_recent(self, limit: int = 10) -> List[RunRecord]:
        with store_errors("run listing"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute("SELECT * FROM etl_runs ORDER BY started_at DESC, id DESC LIMIT ?", (limit,))
            return [_row_to_run(r) for r in cur.fetchall()]

    def list_stale(self, started_before: str) -> List[RunRecord]:
        """Runs still 'running' that started before the given ISO timestamp (crash leftovers)."""
        with store_errors("stale run listing"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute(
                "SELECT * FROM etl_runs WHERE status = 'running' AND started_at < ? ORDER BY started_at ASC",
                (started_before,),
            )
            return [_row_to_run(r) for r in cur.fetchall()]
