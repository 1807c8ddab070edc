from __future__ import annotations

from models.run_record import RunKind
from pipelines.runner import RunContext
from services.errors import BatchFailed
from services.reconciliation_engine import ReconciliationEngine


class ReconcileProfiles:
    """Run ctx.people through the engine as one batch; the run lands in ctx.meta."""

    def __init__(self, engine: ReconciliationEngine, kind: RunKind = "incremental") -> None:
        self.engine = engine
        self.kind = kind

    def run(self, ctx: RunContext) -> RunContext:
        try:
            run = self.engine.run_batch(ctx.people or [], kind=self.kind)
        except BatchFailed as exc:
            ctx.meta["run"] = exc.run
            raise
        ctx.meta["run"] = run
        ctx.meta["profiles_processed"] = run.stats.profiles_processed
        return ctx
