from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


RunKind = Literal["full", "incremental"]
RunStatus = Literal["running", "completed", "failed"]


class RunStats(BaseModel):
    profiles_processed: int = 0
    profiles_added: int = 0
    profiles_updated: int = 0
    profiles_unchanged: int = 0
    images_processed: int = 0
    images_failed: int = 0
    validation_failures: int = 0


class RunRecord(BaseModel):
    """One batch reconciliation and its aggregate statistics."""

    id: int
    run_type: RunKind
    status: RunStatus
    started_at: str
    completed_at: str | None = None
    stats: RunStats = Field(default_factory=RunStats)
    error_message: str | None = None
    user_id: str

    model_config = ConfigDict(extra="ignore")

    @property
    def is_terminal(self) -> bool:
        return self.status != "running"
