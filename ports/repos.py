from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from models.asset_version import AssetVersion
from models.change_entry import ChangeEntry
from models.profile_record import NormalizedProfile
from models.run_record import RunRecord, RunStats
from models.stored_profile import StoredProfile
from models.validation import Finding


class ProfileStorePort(Protocol):
    def get_by_linkedin_id(self, linkedin_id: str) -> Optional[StoredProfile]:
        ...

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
        ...

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
        ...

    def touch_validation(
        self,
        profile_id: int,
        *,
        validation_status: str,
        validation_errors: List[Finding],
        now: str,
    ) -> None:
        ...


class AssetStorePort(Protocol):
    def get_current(self, profile_id: int, image_type: str) -> Optional[AssetVersion]:
        ...

    def insert_current(self, version: AssetVersion) -> AssetVersion:
        ...

    def replace_current(self, current_id: int, version: AssetVersion) -> Optional[AssetVersion]:
        ...


class ChangeLogPort(Protocol):
    def append(self, entries: Iterable[ChangeEntry]) -> int:
        ...

    def list_for_profile(self, profile_id: int) -> List[ChangeEntry]:
        ...


class RunStorePort(Protocol):
    def create(self, run_type: str, user_id: str, started_at: str) -> RunRecord:
        ...

    def finalize(
        self,
        run_id: int,
        *,
        status: str,
        completed_at: str,
        stats: RunStats,
        error_message: Optional[str] = None,
    ) -> bool:
        ...

    def get(self, run_id: int) -> Optional[RunRecord]:
        ...

    def list_recent(self, limit: int = 10) -> List[RunRecord]:
        ...
