"""Batch reconciliation of external profile records against the store.

Records in a batch are processed strictly one after another. Each record is
validated, normalized, fingerprinted and classified:

    added      identity key never seen: insert, reconcile images
    unchanged  same fingerprint: refresh validation bookkeeping only
    updated    fingerprint differs: log tracked-field changes, overwrite, reconcile images

Any error other than a per-image failure aborts the batch; the run is marked
failed with the statistics of the records that completed before it.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from config.settings import Settings, get_settings
from db.repos.changes_repo import ChangesRepo
from db.repos.images_repo import ImagesRepo
from db.repos.profiles_repo import ProfilesRepo
from db.repos.runs_repo import RunsRepo
from models.change_entry import ChangeEntry
from models.profile_record import NormalizedProfile, RawProfile
from models.run_record import RunKind, RunRecord
from models.stored_profile import StoredProfile
from models.validation import Finding
from ports.fetcher import AssetFetcherPort
from ports.principal import PrincipalProviderPort
from ports.repos import AssetStorePort, ChangeLogPort, ProfileStorePort, RunStorePort
from ports.validator import ValidatorPort
from services import change_tracker
from services.asset_fetcher import HttpAssetFetcher
from services.asset_reconciler import AssetOutcome, AssetReconciler
from services.errors import (
    AssetFetchFailed,
    AuthenticationRequired,
    BatchFailed,
    InvalidRunTransition,
    StoreWriteFailed,
)
from services.hashing import Hasher
from services.normalization import normalize_profile, to_raw
from services.principal import SettingsPrincipalProvider
from services.run_recorder import Classification, RunRecorder
from services.validation import ProfileValidator, has_errors
from utils.keyed_lock import PROFILE_LOCKS, KeyedLock

logger = logging.getLogger(__name__)

RawRecord = Union[RawProfile, Mapping[str, Any]]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class RecordOutcome:
    classification: Classification
    profile_id: int
    linkedin_id: str
    findings: List[Finding] = field(default_factory=list)
    changes: List[ChangeEntry] = field(default_factory=list)
    assets: Dict[str, Union[AssetOutcome, str]] = field(default_factory=dict)

    @property
    def validation_failed(self) -> bool:
        return has_errors(self.findings)


class ReconciliationEngine:
    def __init__(
        self,
        *,
        profiles: ProfileStorePort,
        images: AssetStorePort,
        changes: ChangeLogPort,
        runs: RunStorePort,
        validator: ValidatorPort,
        hasher: Hasher,
        principal_provider: PrincipalProviderPort,
        clock: Callable[[], str] = utc_now_iso,
        profile_locks: Optional[KeyedLock] = None,
        asset_locks: Optional[KeyedLock] = None,
    ) -> None:
        self.profiles = profiles
        self.changes = changes
        self.runs = runs
        self.validator = validator
        self.hasher = hasher
        self.principal_provider = principal_provider
        self.clock = clock
        self.profile_locks = profile_locks if profile_locks is not None else PROFILE_LOCKS
        self.asset_reconciler = AssetReconciler(images, hasher, clock, locks=asset_locks)

    # --- Run lifecycle ---
    def _require_principal(self) -> str:
        principal = self.principal_provider.current_principal()
        if not principal:
            raise AuthenticationRequired()
        return principal

    def start_run(self, kind: RunKind = "incremental") -> RunRecorder:
        principal = self._require_principal()
        recorder = RunRecorder(self.runs, self.clock)
        recorder.start(kind, principal)
        return recorder

    def complete_run(self, run: RunRecorder) -> RunRecord:
        return run.finish()

    def fail_run(self, run: RunRecorder, message: str) -> RunRecord:
        return run.fail(message)

    # --- Per-record reconciliation ---
    def process_record(self, record: RawRecord, run: RunRecorder) -> RecordOutcome:
        active = run.run
        if active is None or active.status != "running":
            raise InvalidRunTransition("Cannot process records outside a running run")

        raw = to_raw(record)
        findings = list(self.validator.validate(raw))
        status = self.validator.classify(findings)
        profile = normalize_profile(raw)
        data_hash = self.hasher.fingerprint_profile(profile)

        with self.profile_locks.hold(profile.linkedin_id):
            existing = self.profiles.get_by_linkedin_id(profile.linkedin_id)
            now = self.clock()
            if existing is None:
                outcome = self._add(profile, data_hash, status, findings, now)
            elif existing.data_hash == data_hash:
                self.profiles.touch_validation(
                    existing.id, validation_status=status, validation_errors=findings, now=now
                )
                outcome = RecordOutcome("unchanged", existing.id, profile.linkedin_id, findings)
            else:
                outcome = self._update(existing, profile, data_hash, status, findings, active.id, now)

            images_ok, images_failed = 0, 0
            if outcome.classification != "unchanged":
                images_ok, images_failed = self._reconcile_assets(outcome, profile)

        run.record_progress(
            outcome.classification,
            validation_failed=outcome.validation_failed,
            images_processed=images_ok,
            images_failed=images_failed,
        )
        logger.info(
            "Profile %s %s", profile.linkedin_id, outcome.classification,
            extra={"step": "reconcile", "run_id": active.id, "profile_id": outcome.profile_id,
                   "outcome": outcome.classification, "status": status},
        )
        return outcome

    def _add(self, profile: NormalizedProfile, data_hash: str, status: str, findings: List[Finding], now: str) -> RecordOutcome:
        owner = self._require_principal()
        stored = self.profiles.insert(
            profile,
            data_hash=data_hash,
            validation_status=status,
            validation_errors=findings,
            user_id=owner,
            now=now,
        )
        return RecordOutcome("added", stored.id, profile.linkedin_id, findings)

    def _update(
        self,
        existing: StoredProfile,
        profile: NormalizedProfile,
        data_hash: str,
        status: str,
        findings: List[Finding],
        run_id: int,
        now: str,
    ) -> RecordOutcome:
        field_changes = change_tracker.diff(existing.normalized(), profile)
        entries = change_tracker.to_entries(field_changes, profile_id=existing.id, run_id=run_id, changed_at=now)
        # Untracked-only changes still count as updated, with no audit rows
        self.profiles.update_content(
            existing.id,
            profile,
            data_hash=data_hash,
            validation_status=status,
            validation_errors=findings,
            now=now,
            changes=entries,
        )
        return RecordOutcome("updated", existing.id, profile.linkedin_id, findings, entries)

    def _reconcile_assets(self, outcome: RecordOutcome, profile: NormalizedProfile) -> tuple[int, int]:
        ok, failed = 0, 0
        for ref in profile.assets:
            try:
                outcome.assets[ref.category] = self.asset_reconciler.reconcile(outcome.profile_id, ref.category, ref.url)
                ok += 1
            except (AssetFetchFailed, StoreWriteFailed) as exc:
                outcome.assets[ref.category] = "failed"
                failed += 1
                logger.warning(
                    "Image %s for profile %s not reconciled: %s", ref.category, profile.linkedin_id, exc,
                    extra={"step": "reconcile_asset", "profile_id": outcome.profile_id,
                           "status": "failed", "error": str(exc)},
                )
        return ok, failed

    # --- Batch boundary ---
    def run_batch(self, records: Iterable[RawRecord], kind: RunKind = "incremental") -> RunRecord:
        run = self.start_run(kind)
        try:
            for record in records:
                self.process_record(record, run)
        except Exception as exc:
            failed = self.fail_run(run, str(exc))
            raise BatchFailed(failed) from exc
        return self.complete_run(run)

    # --- Read side ---
    def get_runs(self, limit: int = 10) -> List[RunRecord]:
        return self.runs.list_recent(limit)

    def get_change_history(self, profile_id: int) -> List[ChangeEntry]:
        return self.changes.list_for_profile(profile_id)


def build_engine(
    conn: sqlite3.Connection,
    *,
    settings: Optional[Settings] = None,
    principal_provider: Optional[PrincipalProviderPort] = None,
    fetcher: Optional[AssetFetcherPort] = None,
    validator: Optional[ValidatorPort] = None,
    clock: Callable[[], str] = utc_now_iso,
) -> ReconciliationEngine:
    """Wire the SQLite repositories and default collaborators into an engine."""
    settings = settings or get_settings()
    if fetcher is None and settings.asset_fetch_enabled:
        fetcher = HttpAssetFetcher(settings)
    return ReconciliationEngine(
        profiles=ProfilesRepo(conn),
        images=ImagesRepo(conn),
        changes=ChangesRepo(conn),
        runs=RunsRepo(conn),
        validator=validator or ProfileValidator(settings),
        hasher=Hasher(fetcher, fallback_to_reference=settings.asset_hash_fallback),
        principal_provider=principal_provider or SettingsPrincipalProvider(settings),
        clock=clock,
    )
