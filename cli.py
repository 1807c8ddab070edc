import argparse
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List

from config.settings import get_settings
from db import schema
from db.connection import get_connection
from db.repos.images_repo import ImagesRepo
from db.repos.profiles_repo import ProfilesRepo
from db.repos.runs_repo import RunsRepo
from pipelines.runner import Pipeline, RunContext
from pipelines.steps.reconcile_profiles import ReconcileProfiles
from pipelines.steps.validate_profiles import ValidateProfiles
from services.errors import AuthenticationRequired, BatchFailed
from services.principal import SettingsPrincipalProvider, StaticPrincipalProvider
from services.reconciliation_engine import build_engine
from services.reporting import dump_json, print_run_summary, run_to_dict
from utils.logging_setup import init_logging


def _load_profiles(path: str) -> List[Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("profiles") or []
    return list(data)


def _open(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    return conn


def cmd_bootstrap(args):
    _open(args)
    print("Schema ready")


def cmd_ingest(args):
    conn = _open(args)
    provider = StaticPrincipalProvider(args.principal) if args.principal else SettingsPrincipalProvider()
    engine = build_engine(conn, principal_provider=provider)
    ctx = RunContext(source=args.input)
    ctx.people = _load_profiles(args.input)
    pipeline = Pipeline([ReconcileProfiles(engine, kind=args.kind)])
    try:
        ctx = pipeline.run(ctx)
    except AuthenticationRequired as e:
        print(f"Refusing to run: {e} (set ETL_PRINCIPAL or pass --principal)")
        sys.exit(2)
    except BatchFailed as e:
        print_run_summary(e.run)
        sys.exit(1)
    print_run_summary(ctx.meta["run"])


def cmd_validate(args):
    ctx = RunContext(source=args.input)
    ctx.people = _load_profiles(args.input)
    ctx = Pipeline([ValidateProfiles()]).run(ctx)
    print(json.dumps(ctx.meta["validation_report"], indent=2, ensure_ascii=False))
    print(f"Validation failures: {ctx.meta['validation_failures']}")


def cmd_report_runs(args):
    conn = _open(args)
    runs = RunsRepo(conn).list_recent(args.limit)
    print(json.dumps([run_to_dict(r) for r in runs], indent=2, ensure_ascii=False))


def cmd_report_stale(args):
    conn = _open(args)
    minutes = args.minutes if args.minutes is not None else get_settings().stale_run_minutes
    cutoff = (datetime.now(timezone.utc) - timedelta(minutes=minutes)).isoformat()
    runs = RunsRepo(conn).list_stale(cutoff)
    print(json.dumps([run_to_dict(r) for r in runs], indent=2, ensure_ascii=False))


def _profile_or_exit(conn, linkedin_id: str):
    profile = ProfilesRepo(conn).get_by_linkedin_id(linkedin_id)
    if not profile:
        print("No record found for profile")
        sys.exit(1)
    return profile


def cmd_report_history(args):
    conn = _open(args)
    profile = _profile_or_exit(conn, args.linkedin_id)
    engine = build_engine(conn)
    print(dump_json(engine.get_change_history(profile.id)))


def cmd_report_images(args):
    conn = _open(args)
    profile = _profile_or_exit(conn, args.linkedin_id)
    print(dump_json(ImagesRepo(conn).list_for_profile(profile.id)))


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Profile reconciliation CLI")
    parser.add_argument("--db", default=settings.db_path, help="Path to SQLite DB (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_boot = sub.add_parser("bootstrap", help="Create tables and indexes")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_ing = sub.add_parser("ingest", help="Reconcile a JSON batch of profiles against the store")
    p_ing.add_argument("--input", required=True, help="Path to JSON file (array or {'profiles': [...]})")
    p_ing.add_argument("--kind", choices=["incremental", "full"], default="incremental", help="Run kind recorded on the run")
    p_ing.add_argument("--principal", default=None, help="Acting principal (default: ETL_PRINCIPAL)")
    p_ing.set_defaults(func=cmd_ingest)

    p_val = sub.add_parser("validate", help="Validate a JSON batch without writing")
    p_val.add_argument("--input", required=True, help="Path to JSON file")
    p_val.set_defaults(func=cmd_validate)

    p_runs = sub.add_parser("report-runs", help="List recent runs, newest first")
    p_runs.add_argument("--limit", type=int, default=10)
    p_runs.set_defaults(func=cmd_report_runs)

    p_stale = sub.add_parser("report-stale", help="List runs still 'running' after the stale threshold")
    p_stale.add_argument("--minutes", type=int, default=None, help="Threshold (default: STALE_RUN_MINUTES)")
    p_stale.set_defaults(func=cmd_report_stale)

    p_hist = sub.add_parser("report-history", help="Show field change history for a profile")
    p_hist.add_argument("--linkedin-id", required=True)
    p_hist.set_defaults(func=cmd_report_history)

    p_img = sub.add_parser("report-images", help="Show image versions for a profile")
    p_img.add_argument("--linkedin-id", required=True)
    p_img.set_defaults(func=cmd_report_images)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
