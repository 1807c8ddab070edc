from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create reconciliation schema and indexes (idempotent)."""
    cur = conn.cursor()

    # Profiles: one row per external identity key, mutated in place
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS linkedin_profiles (\n"
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "  linkedin_id TEXT NOT NULL UNIQUE,\n"
            "  full_name TEXT NOT NULL DEFAULT '',\n"
            "  headline TEXT NOT NULL DEFAULT '',\n"
            "  location TEXT NOT NULL DEFAULT '',\n"
            "  summary TEXT NOT NULL DEFAULT '',\n"
            "  experience_json TEXT NOT NULL DEFAULT '[]',\n"
            "  education_json TEXT NOT NULL DEFAULT '[]',\n"
            "  skills_json TEXT NOT NULL DEFAULT '[]',\n"
            "  connections_count INTEGER NOT NULL DEFAULT 0,\n"
            "  profile_url TEXT NOT NULL DEFAULT '',\n"
            "  assets_json TEXT NOT NULL DEFAULT '[]',\n"
            "  data_hash TEXT NOT NULL,\n"
            "  validation_status TEXT NOT NULL DEFAULT 'valid',\n"
            "  validation_errors_json TEXT NOT NULL DEFAULT '[]',\n"
            "  user_id TEXT NOT NULL,\n"
            "  created_at TEXT NOT NULL,\n"
            "  updated_at TEXT NOT NULL,\n"
            "  last_validated_at TEXT NOT NULL\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_linkedin_profiles_user_id ON linkedin_profiles(user_id);")

    # Runs
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS etl_runs (\n"
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "  user_id TEXT NOT NULL,\n"
            "  run_type TEXT NOT NULL CHECK (run_type IN ('full', 'incremental')),\n"
            "  status TEXT NOT NULL CHECK (status IN ('running', 'completed', 'failed')),\n"
            "  started_at TEXT NOT NULL,\n"
            "  completed_at TEXT,\n"
            "  profiles_processed INTEGER NOT NULL DEFAULT 0,\n"
            "  profiles_added INTEGER NOT NULL DEFAULT 0,\n"
            "  profiles_updated INTEGER NOT NULL DEFAULT 0,\n"
            "  profiles_unchanged INTEGER NOT NULL DEFAULT 0,\n"
            "  images_processed INTEGER NOT NULL DEFAULT 0,\n"
            "  images_failed INTEGER NOT NULL DEFAULT 0,\n"
            "  validation_failures INTEGER NOT NULL DEFAULT 0,\n"
            "  error_message TEXT\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_etl_runs_started_at ON etl_runs(started_at);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_etl_runs_status ON etl_runs(status);")

    # Change history (append-only)
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS profile_change_history (\n"
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "  profile_id INTEGER NOT NULL,\n"
            "  etl_run_id INTEGER NOT NULL,\n"
            "  field_name TEXT NOT NULL,\n"
            "  old_value TEXT NOT NULL,\n"
            "  new_value TEXT NOT NULL,\n"
            "  changed_at TEXT NOT NULL,\n"
            "  FOREIGN KEY(profile_id) REFERENCES linkedin_profiles(id),\n"
            "  FOREIGN KEY(etl_run_id) REFERENCES etl_runs(id)\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_change_history_profile ON profile_change_history(profile_id, changed_at);")

    # Image versions; ownership resolves through profile_id
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS linkedin_profile_images (\n"
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "  profile_id INTEGER NOT NULL,\n"
            "  image_type TEXT NOT NULL CHECK (image_type IN ('profile_photo', 'banner')),\n"
            "  image_url TEXT NOT NULL,\n"
            "  image_hash TEXT NOT NULL,\n"
            "  is_current INTEGER NOT NULL DEFAULT 1,\n"
            "  created_at TEXT NOT NULL,\n"
            "  FOREIGN KEY(profile_id) REFERENCES linkedin_profiles(id)\n"
            ")"
        )
    )
    # Store-level guard: a second current version for the same key is rejected
    cur.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_profile_images_current "
        "ON linkedin_profile_images(profile_id, image_type) WHERE is_current = 1;"
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_profile_images_profile ON linkedin_profile_images(profile_id, image_type);")

    conn.commit()
