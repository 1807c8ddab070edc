from __future__ import annotations

import sqlite3
from typing import Optional


def get_connection(db_path: str, timeout: Optional[float] = 30.0) -> sqlite3.Connection:
    """Open a SQLite connection for reconciliation runs.

    - WAL journal so report readers do not block the writer
    - NORMAL synchronous for performance
    - foreign_keys ON so change/image rows always resolve to a profile
    - check_same_thread off; callers serialise per key via utils.keyed_lock
    """
    conn = sqlite3.connect(db_path, timeout=timeout or 30.0, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn
