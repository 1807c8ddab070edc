from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Sequence

from models.change_entry import ChangeEntry
from models.profile_record import NormalizedProfile
from services.hashing import canonical_json


class TrackedField(str, Enum):
    """Scalar fields whose changes go to the audit log, in emission order.

    Structured lists (experience, education, skills) are deliberately absent.
    """

    FULL_NAME = "full_name"
    HEADLINE = "headline"
    LOCATION = "location"
    SUMMARY = "summary"
    CONNECTIONS_COUNT = "connections_count"

    def read(self, profile: NormalizedProfile) -> Any:
        if self is TrackedField.FULL_NAME:
            return profile.full_name
        if self is TrackedField.HEADLINE:
            return profile.headline
        if self is TrackedField.LOCATION:
            return profile.location
        if self is TrackedField.SUMMARY:
            return profile.summary
        if self is TrackedField.CONNECTIONS_COUNT:
            return profile.connections_count
        raise AssertionError(f"unhandled tracked field {self!r}")


TRACKED_FIELDS: Sequence[TrackedField] = tuple(TrackedField)


@dataclass(frozen=True)
class FieldChange:
    field: TrackedField
    old_value: str
    new_value: str


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def diff(
    old: NormalizedProfile,
    new: NormalizedProfile,
    tracked: Iterable[TrackedField] = TRACKED_FIELDS,
) -> List[FieldChange]:
    """Per-field changes between two normalized profiles, in TrackedField declaration order."""
    wanted = set(tracked)
    changes: List[FieldChange] = []
    for field in TrackedField:
        if field not in wanted:
            continue
        before, after = field.read(old), field.read(new)
        if canonical_json(before) != canonical_json(after):
            changes.append(FieldChange(field=field, old_value=_as_text(before), new_value=_as_text(after)))
    return changes


def to_entries(changes: Iterable[FieldChange], *, profile_id: int, run_id: int, changed_at: str) -> List[ChangeEntry]:
    return [
        ChangeEntry(
            profile_id=profile_id,
            etl_run_id=run_id,
            field_name=c.field.value,
            old_value=c.old_value,
            new_value=c.new_value,
            changed_at=changed_at,
        )
        for c in changes
    ]
