from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ChangeEntry(BaseModel):
    """Append-only audit row: one tracked field changing during one run."""

    id: int | None = None
    profile_id: int
    etl_run_id: int
    field_name: str
    old_value: str
    new_value: str
    changed_at: str

    model_config = ConfigDict(frozen=True)
