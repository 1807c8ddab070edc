from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from services.errors import StoreWriteFailed


@contextmanager
def store_errors(operation: str, conn: sqlite3.Connection | None = None) -> Iterator[None]:
    """Surface driver failures as StoreWriteFailed, rolling back an open write."""
    try:
        yield
    except sqlite3.Error as exc:
        if conn is not None and conn.in_transaction:
            conn.rollback()
        raise StoreWriteFailed(f"{operation} failed: {exc}") from exc
