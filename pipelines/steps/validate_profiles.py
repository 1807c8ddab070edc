from __future__ import annotations

from typing import Any, Dict, List

from pipelines.runner import RunContext
from services.validation import ProfileValidator, has_errors


class ValidateProfiles:
    """Dry-run validation: collects findings per profile without touching the store."""

    def __init__(self, validator: ProfileValidator | None = None) -> None:
        self.validator = validator or ProfileValidator()

    def run(self, ctx: RunContext) -> RunContext:
        report: List[Dict[str, Any]] = []
        failures = 0
        for p in ctx.people or []:
            findings = self.validator.validate(p)
            if has_errors(findings):
                failures += 1
            report.append({
                "linkedin_id": p.get("linkedin_id") if isinstance(p, dict) else getattr(p, "linkedin_id", None),
                "status": self.validator.classify(findings),
                "findings": [f.model_dump() for f in findings],
            })
        ctx.meta["validation_report"] = report
        ctx.meta["validation_failures"] = failures
        return ctx
