from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Union

from models.profile_record import RawProfile
from models.validation import Finding, ValidationStatus


class ValidatorPort(Protocol):
    def validate(self, raw: Union[RawProfile, Mapping[str, Any]]) -> List[Finding]:
        ...

    def classify(self, findings: List[Finding]) -> ValidationStatus:
        ...
