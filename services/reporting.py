from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from models.run_record import RunRecord


def run_to_dict(run: RunRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = run.model_dump(exclude={"stats"})
    out.update(run.stats.model_dump())
    return out


def dump_json(rows: Iterable[Any]) -> str:
    items: List[Any] = [r.model_dump() if hasattr(r, "model_dump") else r for r in rows]
    return json.dumps(items, indent=2, ensure_ascii=False)


def print_run_summary(run: RunRecord) -> None:
    """Print summary of a reconciliation run."""
    stats = run.stats
    print("\n" + "="*60)
    print("PROFILE RECONCILIATION - SUMMARY")
    print("="*60)
    print(f"Run: {run.id} ({run.run_type})")
    print(f"Status: {run.status}")
    print(f"Started At: {run.started_at}")
    print(f"Completed At: {run.completed_at or 'N/A'}")
    print()
    print("Profiles:")
    print(f"  Processed: {stats.profiles_processed}")
    print(f"  Added: {stats.profiles_added}")
    print(f"  Updated: {stats.profiles_updated}")
    print(f"  Unchanged: {stats.profiles_unchanged}")
    print(f"  Validation Failures: {stats.validation_failures}")
    print()
    print(f"Images Processed: {stats.images_processed}")
    if stats.images_failed:
        print(f"Images Failed: {stats.images_failed}")
    if run.error_message:
        print(f"Error: {run.error_message}")
    print("="*60)
