from __future__ import annotations

import pytest

from conftest import make_profile
from db.repos.changes_repo import ChangesRepo
from db.repos.images_repo import ImagesRepo
from db.repos.profiles_repo import ProfilesRepo
from db.repos.runs_repo import RunsRepo
from services.errors import AuthenticationRequired, BatchFailed, InvalidRunTransition, StoreWriteFailed
from services.normalization import MissingIdentityKey


def _count(conn, table):
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def test_same_record_twice_is_added_then_unchanged(engine, conn):
    first = engine.run_batch([make_profile()])
    second = engine.run_batch([make_profile()])
    assert first.stats.profiles_added == 1 and first.stats.images_processed == 1
    assert second.stats.profiles_unchanged == 1
    assert second.stats.images_processed == 0
    assert _count(conn, "profile_change_history") == 0
    assert _count(conn, "linkedin_profile_images") == 1


def test_unchanged_refreshes_validation_timestamp_only(engine, conn):
    engine.run_batch([make_profile()])
    before = ProfilesRepo(conn).get_by_linkedin_id("p1")
    engine.run_batch([make_profile()])
    after = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert after.last_validated_at > before.last_validated_at
    assert after.updated_at == before.updated_at
    assert after.data_hash == before.data_hash


def test_classification_counts_sum_to_processed(engine):
    engine.run_batch([make_profile("p1"), make_profile("p2")])
    run = engine.run_batch([
        make_profile("p1"),
        make_profile("p2", headline="Changed"),
        make_profile("p3"),
        make_profile("p3"),
    ])
    s = run.stats
    assert (s.profiles_added, s.profiles_updated, s.profiles_unchanged) == (1, 1, 2)
    assert s.profiles_added + s.profiles_updated + s.profiles_unchanged == s.profiles_processed == 4


def test_update_logs_tracked_changes_and_overwrites(engine, conn):
    engine.run_batch([make_profile()])
    run = engine.run_batch([make_profile(headline="Staff Engineer", connections_count=480)])
    assert run.stats.profiles_updated == 1

    stored = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert stored.headline == "Staff Engineer" and stored.connections_count == 480
    history = engine.get_change_history(stored.id)
    assert [(c.field_name, c.old_value, c.new_value) for c in reversed(history)] == [
        ("headline", "Engineer at Acme", "Staff Engineer"),
        ("connections_count", "500", "480"),
    ]
    assert all(c.etl_run_id == run.id for c in history)


def test_untracked_change_is_updated_without_history(engine, conn):
    engine.run_batch([make_profile()])
    run = engine.run_batch([make_profile(skills=["python", "sql", "spark"])])
    assert run.stats.profiles_updated == 1
    assert _count(conn, "profile_change_history") == 0
    assert ProfilesRepo(conn).get_by_linkedin_id("p1").skills == ["python", "sql", "spark"]


def test_owner_and_relationships_populated(engine, conn):
    engine.run_batch([make_profile()])
    stored = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert stored.user_id == "user-1"
    (image,) = ImagesRepo(conn).list_for_profile(stored.id)
    assert image.profile_id == stored.id and image.is_current
    assert RunsRepo(conn).list_recent(1)[0].user_id == "user-1"


def test_validation_failure_flags_but_still_ingests(engine, conn):
    run = engine.run_batch([make_profile(full_name=None)])
    assert run.status == "completed"
    assert run.stats.profiles_added == 1
    assert run.stats.validation_failures == 1
    stored = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert stored.validation_status == "invalid"
    assert any(f.field == "full_name" for f in stored.validation_errors)


class _FailingProfilesRepo(ProfilesRepo):
    def insert(self, profile, **kwargs):
        if profile.linkedin_id == "p5":
            raise StoreWriteFailed("profile insert failed: disk I/O error")
        return super().insert(profile, **kwargs)


def test_failure_preserves_partial_stats(engine, conn):
    engine.profiles = _FailingProfilesRepo(conn)
    records = [make_profile(f"p{i}", profile_image_url=None) for i in range(1, 11)]
    records[1]["full_name"] = None  # one validation failure before the crash
    with pytest.raises(BatchFailed) as excinfo:
        engine.run_batch(records)

    failed = excinfo.value.run
    assert isinstance(excinfo.value.__cause__, StoreWriteFailed)
    assert failed.status == "failed"
    assert failed.error_message == "profile insert failed: disk I/O error"
    assert failed.stats.profiles_processed == 4
    assert failed.stats.profiles_added == 4
    assert failed.stats.validation_failures == 1

    stored = RunsRepo(conn).get(failed.id)
    assert stored.status == "failed"
    assert stored.stats == failed.stats
    assert stored.error_message == failed.error_message
    assert _count(conn, "linkedin_profiles") == 4


def test_record_without_identity_aborts_batch(engine, conn):
    with pytest.raises(BatchFailed) as excinfo:
        engine.run_batch([make_profile("p1"), {"full_name": "Nobody"}])
    assert isinstance(excinfo.value.__cause__, MissingIdentityKey)
    assert excinfo.value.run.stats.profiles_processed == 1


def test_asset_fetch_failure_does_not_abort_record(engine, conn):
    run = engine.run_batch([make_profile(
        profile_image_url="https://media.example.com/gone.jpg",
        banner_image_url="https://media.example.com/p1-banner.jpg",
    )])
    assert run.status == "completed"
    assert run.stats.profiles_added == 1
    assert run.stats.images_processed == 1
    assert run.stats.images_failed == 1
    stored = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert [v.image_type for v in ImagesRepo(conn).list_for_profile(stored.id)] == ["banner"]


def test_start_run_requires_principal(engine, conn):
    engine.principal_provider.principal = None
    with pytest.raises(AuthenticationRequired):
        engine.run_batch([make_profile()])
    assert _count(conn, "etl_runs") == 0


def test_new_profile_requires_principal_mid_run(engine, conn):
    engine.run_batch([make_profile("p1")])
    run = engine.start_run()
    engine.principal_provider.principal = None
    # Known identity still reconciles
    assert engine.process_record(make_profile("p1", headline="New"), run).classification == "updated"
    with pytest.raises(AuthenticationRequired):
        engine.process_record(make_profile("p2"), run)
    engine.fail_run(run, "Not authenticated")
    assert ProfilesRepo(conn).get_by_linkedin_id("p2") is None


def test_process_record_outside_running_run(engine):
    run = engine.start_run("full")
    engine.complete_run(run)
    with pytest.raises(InvalidRunTransition):
        engine.process_record(make_profile(), run)
    with pytest.raises(InvalidRunTransition):
        engine.fail_run(run, "late failure")


def test_get_runs_newest_first(engine):
    a = engine.run_batch([make_profile("p1")], kind="full")
    b = engine.run_batch([make_profile("p1")])
    assert [r.id for r in engine.get_runs()] == [b.id, a.id]
    assert [r.id for r in engine.get_runs(limit=1)] == [b.id]


def test_change_rows_are_append_only(engine, conn):
    engine.run_batch([make_profile()])
    engine.run_batch([make_profile(location="Munich")])
    engine.run_batch([make_profile(location="Hamburg")])
    profile_id = ProfilesRepo(conn).get_by_linkedin_id("p1").id
    history = ChangesRepo(conn).list_for_profile(profile_id)
    assert [(c.old_value, c.new_value) for c in history] == [("Munich", "Hamburg"), ("Berlin, Germany", "Munich")]


def test_wrongly_typed_fields_are_findings_not_failures(engine, conn):
    run = engine.run_batch([
        make_profile("p1"),
        make_profile(12345, headline=42),
        make_profile("p3", connections_count=1.5),
    ])
    assert run.status == "completed"
    assert run.stats.profiles_processed == 3
    assert run.stats.profiles_added == 3
    assert run.stats.validation_failures == 1

    stored = ProfilesRepo(conn).get_by_linkedin_id("12345")
    assert stored.headline == "42"
    assert stored.validation_status == "invalid"
    assert [f.field for f in stored.validation_errors] == ["headline"]


def _add_trigger(conn, name, event):
    conn.execute(
        f"CREATE TRIGGER {name} BEFORE {event} "
        "BEGIN SELECT RAISE(ABORT, 'disk I/O error'); END;"
    )
    conn.commit()


def test_image_store_failure_keeps_prior_version_current(engine, conn):
    engine.run_batch([make_profile("p1")])
    profile = ProfilesRepo(conn).get_by_linkedin_id("p1")
    before = ImagesRepo(conn).get_current(profile.id, "profile_photo")

    _add_trigger(conn, "fail_image_insert", "INSERT ON linkedin_profile_images")
    run = engine.run_batch([make_profile("p1", profile_image_url="https://media.example.com/p1-banner.jpg")])

    assert run.status == "completed"
    assert run.stats.profiles_updated == 1
    assert run.stats.images_failed == 1
    assert run.stats.images_processed == 0
    current = ImagesRepo(conn).get_current(profile.id, "profile_photo")
    assert current.id == before.id and current.is_current
    assert len(ImagesRepo(conn).list_for_profile(profile.id)) == 1


def test_failed_content_update_leaves_no_change_rows(engine, conn):
    engine.run_batch([make_profile("p1")])
    _add_trigger(conn, "fail_profile_update", "UPDATE ON linkedin_profiles")

    with pytest.raises(BatchFailed) as excinfo:
        engine.run_batch([make_profile("p1", headline="Principal Engineer at Acme")])
    assert isinstance(excinfo.value.__cause__, StoreWriteFailed)

    stored = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert stored.headline == "Engineer at Acme"
    assert engine.get_change_history(stored.id) == []
    assert _count(conn, "profile_change_history") == 0
