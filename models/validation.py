from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


Severity = Literal["info", "warning", "error"]
ValidationStatus = Literal["valid", "warning", "invalid"]


class Finding(BaseModel):
    """One validator observation about a raw profile; never raised, only recorded."""

    field: str | None = None
    message: str
    severity: Severity

    model_config = ConfigDict(frozen=True)
