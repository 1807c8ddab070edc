from __future__ import annotations

import sqlite3
from typing import Iterable, List

from db.repos._store_errors import store_errors
from models.change_entry import ChangeEntry


def write_change_rows(conn: sqlite3.Connection, entries: Iterable[ChangeEntry]) -> int:
    """Insert change rows without committing; the caller owns the transaction."""
    rows = [
        (e.profile_id, e.etl_run_id, e.field_name, e.old_value, e.new_value, e.changed_at)
        for e in entries
    ]
    if rows:
        conn.executemany(
            "INSERT INTO profile_change_history (profile_id, etl_run_id, field_name, old_value, new_value, changed_at) "
            "VALUES (?, ?, ?, ?, ?, ?);",
            rows,
        )
    return len(rows)


class ChangesRepo:
    """Insert-only access to profile_change_history."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def append(self, entries: Iterable[ChangeEntry]) -> int:
        with store_errors("change history insert", self.conn):
            count = write_change_rows(self.conn, entries)
            self.conn.commit()
        return count

    def list_for_profile(self, profile_id: int) -> List[ChangeEntry]:
        """Newest first; ties broken by insertion order descending."""
        with store_errors("change history lookup"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute(
                "SELECT * FROM profile_change_history WHERE profile_id = ? ORDER BY changed_at DESC, id DESC",
                (profile_id,),
            )
            return [ChangeEntry(**dict(r)) for r in cur.fetchall()]

    def count_for_run(self, run_id: int) -> int:
        with store_errors("change history count"):
            cur = self.conn.execute(
                "SELECT COUNT(*) FROM profile_change_history WHERE etl_run_id = ?", (run_id,)
            )
            return int(cur.fetchone()[0])
