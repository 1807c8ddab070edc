from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, Iterable, List, Optional

from db.repos._store_errors import store_errors
from db.repos.changes_repo import write_change_rows
from models.change_entry import ChangeEntry
from models.profile_record import NormalizedProfile
from models.stored_profile import StoredProfile
from models.validation import Finding
from services.errors import StoreWriteFailed


def _content_params(profile: NormalizedProfile) -> Dict[str, Any]:
    return {
        "full_name": profile.full_name,
        "headline": profile.headline,
        "location": profile.location,
        "summary": profile.summary,
        "experience_json": json.dumps(profile.experience, ensure_ascii=False),
        "education_json": json.dumps(profile.education, ensure_ascii=False),
        "skills_json": json.dumps(profile.skills, ensure_ascii=False),
        "connections_count": profile.connections_count,
        "profile_url": profile.profile_url,
        "assets_json": json.dumps([a.model_dump() for a in profile.assets], ensure_ascii=False),
    }


def _findings_json(findings: List[Finding]) -> str:
    return json.dumps([f.model_dump() for f in findings], ensure_ascii=False)


def _row_to_profile(row: sqlite3.Row) -> StoredProfile:
    return StoredProfile(
        id=row["id"],
        linkedin_id=row["linkedin_id"],
        full_name=row["full_name"],
        headline=row["headline"],
        location=row["location"],
        summary=row["summary"],
        experience=json.loads(row["experience_json"]),
        education=json.loads(row["education_json"]),
        skills=json.loads(row["skills_json"]),
        connections_count=row["connections_count"],
        profile_url=row["profile_url"],
        assets=json.loads(row["assets_json"]),
        data_hash=row["data_hash"],
        validation_status=row["validation_status"],
        validation_errors=json.loads(row["validation_errors_json"]),
        user_id=row["user_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_validated_at=row["last_validated_at"],
    )


class ProfilesRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get_by_linkedin_id(self, linkedin_id: str) -> Optional[StoredProfile]:
        """Point lookup by external identity key."""
        with store_errors("profile lookup"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute("SELECT * FROM linkedin_profiles WHERE linkedin_id = ?", (linkedin_id,))
            row = cur.fetchone()
        return _row_to_profile(row) if row else None

    def insert(
        self,
        profile: NormalizedProfile,
        *,
        data_hash: str,
        validation_status: str,
        validation_errors: List[Finding],
        user_id: str,
        now: str,
    ) -> StoredProfile:
        """Insert a first-seen profile owned by user_id; returns the stored row."""
        params = _content_params(profile)
        columns = ["linkedin_id", *params.keys(), "data_hash", "validation_status",
                   "validation_errors_json", "user_id", "created_at", "updated_at", "last_validated_at"]
        values = [profile.linkedin_id, *params.values(), data_hash, validation_status,
                  _findings_json(validation_errors), user_id, now, now, now]
        sql = (
            f"INSERT INTO linkedin_profiles ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) RETURNING id;"
        )
        with store_errors("profile insert", self.conn):
            cur = self.conn.cursor()
            cur.execute(sql, values)
            profile_id = int(cur.fetchone()[0])
            self.conn.commit()
        stored = self.get_by_id(profile_id)
        if stored is None:
            raise StoreWriteFailed(f"profile insert failed: row {profile_id} not readable after insert")
        return stored

    def update_content(
        self,
        profile_id: int,
        profile: NormalizedProfile,
        *,
        data_hash: str,
        validation_status: str,
        validation_errors: List[Finding],
        now: str,
        changes: Iterable[ChangeEntry] = (),
    ) -> None:
        """Overwrite content fields of an existing profile. Identity key and owner never change.

        Change-log rows are written in the same transaction, so the log never
        records a change whose content write failed.
        """
        params = _content_params(profile)
        assignments = ", ".join(f"{col} = ?" for col in params)
        sql = (
            f"UPDATE linkedin_profiles SET {assignments}, data_hash = ?, validation_status = ?, "
            "validation_errors_json = ?, updated_at = ?, last_validated_at = ? WHERE id = ?;"
        )
        with store_errors("profile update", self.conn):
            write_change_rows(self.conn, changes)
            cur = self.conn.execute(sql, (
                *params.values(), data_hash, validation_status,
                _findings_json(validation_errors), now, now, profile_id,
            ))
            if cur.rowcount != 1:
                raise sqlite3.IntegrityError(f"profile {profile_id} not found")
            self.conn.commit()

    def touch_validation(
        self,
        profile_id: int,
        *,
        validation_status: str,
        validation_errors: List[Finding],
        now: str,
    ) -> None:
        """Refresh validation bookkeeping only (unchanged content)."""
        with store_errors("profile validation update", self.conn):
            self.conn.execute(
                "UPDATE linkedin_profiles SET validation_status = ?, validation_errors_json = ?, "
                "last_validated_at = ? WHERE id = ?;",
                (validation_status, _findings_json(validation_errors), now, profile_id),
            )
            self.conn.commit()

    def get_by_id(self, profile_id: int) -> Optional[StoredProfile]:
        with store_errors("profile lookup"):
            cur = self.conn.cursor()
            cur.row_factory = sqlite3.Row
            cur.execute("SELECT * FROM linkedin_profiles WHERE id = ?", (profile_id,))
            row = cur.fetchone()
        return _row_to_profile(row) if row else None
