from __future__ import annotations

import sqlite3
from typing import List, Optional

from db.repos._store_errors import store_errors
from models.asset_version import AssetVersion


def _row_to_version(row: sqlite3.Row) -> AssetVersion:
    return AssetVersion(
        id=row["id"],
        profile_id=row["profile_id"],
        image_type=row["image_type"],
        image_url=row["image_url"],
        image_hash=row["image_hash"],
        is_current=bool(row["is_current"]),
        created_at=row["created_at"],
    )


class ImagesRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get_current(self, profile_id: int, image_type: str) -> Optional[AssetVersion]:
        with store_errors("current image lookup"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute(
                "SELECT * FROM linkedin_profile_images "
                "WHERE profile_id = ? AND image_type = ? AND is_current = 1",
                (profile_id, image_type),
            )
            row = cur.fetchone()
        return _row_to_version(row) if row else None

    def _insert_row(self, version: AssetVersion) -> int:
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO linkedin_profile_images (profile_id, image_type, image_url, image_hash, is_current, created_at) "
            "VALUES (?, ?, ?, ?, 1, ?) RETURNING id;",
            (version.profile_id, version.image_type, version.image_url, version.image_hash, version.created_at),
        )
        return int(cur.fetchone()[0])

    def insert_current(self, version: AssetVersion) -> AssetVersion:
        """Insert the first current version; the partial unique index rejects a second current row."""
        with store_errors("image insert", self.conn):
            image_id = self._insert_row(version)
            self.conn.commit()
        return version.model_copy(update={"id": image_id, "is_current": True})

    def replace_current(self, current_id: int, version: AssetVersion) -> Optional[AssetVersion]:
        """Retire current_id and insert version as current in one transaction.

        Returns None, writing nothing, if current_id was no longer current.
        Any failure rolls back both statements, so the old version stays current.
        """
        with store_errors("image versioning", self.conn):
            cur = self.conn.execute(
                "UPDATE linkedin_profile_images SET is_current = 0 WHERE id = ? AND is_current = 1;",
                (current_id,),
            )
            if cur.rowcount != 1:
                self.conn.rollback()
                return None
            image_id = self._insert_row(version)
            self.conn.commit()
        return version.model_copy(update={"id": image_id, "is_current": True})

    def list_for_profile(self, profile_id: int, image_type: Optional[str] = None) -> List[AssetVersion]:
        """All versions for a profile, oldest first."""
        sql = "SELECT * FROM linkedin_profile_images WHERE profile_id = ?"
        params: list = [profile_id]
        if image_type:
            sql += " AND image_type = ?"
            params.append(image_type)
        sql += " ORDER BY id ASC"
        with store_errors("image listing"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute(sql, params)
            return [_row_to_version(r) for r in cur.fetchall()]
