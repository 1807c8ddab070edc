from __future__ import annotations

from pydantic import ConfigDict, Field

from models.profile_record import NormalizedProfile
from models.validation import Finding, ValidationStatus


class StoredProfile(NormalizedProfile):
    """App/DB record shape: a normalized profile plus reconciliation bookkeeping."""

    id: int
    data_hash: str
    validation_status: ValidationStatus = "valid"
    validation_errors: list[Finding] = Field(default_factory=list)
    user_id: str
    created_at: str
    updated_at: str
    last_validated_at: str

    model_config = ConfigDict(extra="ignore")

    def normalized(self) -> NormalizedProfile:
        return NormalizedProfile.model_validate(
            self.model_dump(include=set(NormalizedProfile.model_fields))
        )
