from __future__ import annotations

import logging
from typing import Callable, Literal, Optional

from models.run_record import RunKind, RunRecord, RunStats
from ports.repos import RunStorePort
from services.errors import InvalidRunTransition

logger = logging.getLogger(__name__)

Classification = Literal["added", "updated", "unchanged"]


class RunRecorder:
    """Lifecycle of one batch run: running -> completed | failed.

    Progress accumulates in memory; the store sees one insert at start and one
    terminal update. A crash leaves the row 'running', which is what an external
    reaper looks for.
    """

    def __init__(self, store: RunStorePort, clock: Callable[[], str]) -> None:
        self.store = store
        self.clock = clock
        self.run: Optional[RunRecord] = None

    @property
    def stats(self) -> RunStats:
        return self._active().stats

    def start(self, kind: RunKind, principal: str) -> RunRecord:
        if self.run is not None:
            raise InvalidRunTransition(f"Recorder already holds run {self.run.id}")
        self.run = self.store.create(kind, principal, self.clock())
        logger.info(
            "Started %s run", kind,
            extra={"step": "run", "status": "running", "run_id": self.run.id},
        )
        return self.run

    def record_progress(
        self,
        classification: Classification,
        *,
        validation_failed: bool = False,
        images_processed: int = 0,
        images_failed: int = 0,
    ) -> RunStats:
        run = self._require_running("record progress")
        stats = run.stats
        stats.profiles_processed += 1
        if classification == "added":
            stats.profiles_added += 1
        elif classification == "updated":
            stats.profiles_updated += 1
        else:
            stats.profiles_unchanged += 1
        if validation_failed:
            stats.validation_failures += 1
        stats.images_processed += images_processed
        stats.images_failed += images_failed
        return stats

    def finish(self) -> RunRecord:
        return self._terminate("completed", None)

    def fail(self, message: str) -> RunRecord:
        return self._terminate("failed", message)

    def _terminate(self, status: str, message: Optional[str]) -> RunRecord:
        run = self._require_running(f"mark {status}")
        completed_at = self.clock()
        if not self.store.finalize(
            run.id, status=status, completed_at=completed_at, stats=run.stats, error_message=message
        ):
            raise InvalidRunTransition(f"Run {run.id} is no longer running in the store")
        self.run = run.model_copy(update={
            "status": status,
            "completed_at": completed_at,
            "error_message": message,
        })
        level = logging.INFO if status == "completed" else logging.ERROR
        logger.log(
            level, "Run %s %s: %s", run.id, status, run.stats.model_dump(),
            extra={"step": "run", "status": status, "run_id": run.id, "error": message or "-"},
        )
        return self.run

    def _active(self) -> RunRecord:
        if self.run is None:
            raise InvalidRunTransition("No run has been started")
        return self.run

    def _require_running(self, action: str) -> RunRecord:
        run = self._active()
        if run.status != "running":
            raise InvalidRunTransition(f"Cannot {action}: run {run.id} is {run.status}")
        return run
