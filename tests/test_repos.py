from __future__ import annotations

import pytest

from db.repos.changes_repo import ChangesRepo
from db.repos.images_repo import ImagesRepo
from db.repos.profiles_repo import ProfilesRepo
from db.repos.runs_repo import RunsRepo
from models.asset_version import AssetVersion
from models.change_entry import ChangeEntry
from models.run_record import RunStats
from services.errors import StoreWriteFailed
from services.normalization import normalize_profile
from conftest import make_profile


def _stored(conn):
    return ProfilesRepo(conn).insert(
        normalize_profile(make_profile("p1")),
        data_hash="h1",
        validation_status="valid",
        validation_errors=[],
        user_id="user-1",
        now="2024-01-01T00:00:00+00:00",
    )


def test_profile_insert_round_trips_content(conn):
    stored = _stored(conn)
    loaded = ProfilesRepo(conn).get_by_linkedin_id("p1")
    assert loaded is not None and loaded.id == stored.id
    assert loaded.normalized() == normalize_profile(make_profile("p1"))
    assert loaded.user_id == "user-1"
    assert loaded.created_at == loaded.updated_at == loaded.last_validated_at


def test_duplicate_identity_key_is_a_store_failure(conn):
    _stored(conn)
    with pytest.raises(StoreWriteFailed):
        _stored(conn)


def test_second_current_image_rejected_by_index(conn):
    profile = _stored(conn)
    repo = ImagesRepo(conn)
    version = AssetVersion(
        profile_id=profile.id, image_type="profile_photo",
        image_url="https://media.example.com/p1.jpg", image_hash="a", created_at="t1",
    )
    first = repo.insert_current(version)
    with pytest.raises(StoreWriteFailed):
        repo.insert_current(version.model_copy(update={"image_hash": "b"}))
    assert repo.get_current(profile.id, "profile_photo").id == first.id

    second = repo.replace_current(first.id, version.model_copy(update={"image_hash": "b", "created_at": "t2"}))
    assert second is not None and second.id != first.id
    # The old id is no longer current, so a stale replace writes nothing
    assert repo.replace_current(first.id, version.model_copy(update={"image_hash": "c"})) is None
    assert repo.get_current(profile.id, "profile_photo").id == second.id
    assert len(repo.list_for_profile(profile.id)) == 2


def test_run_finalize_only_once(conn):
    repo = RunsRepo(conn)
    run = repo.create("full", "user-1", "2024-01-01T00:00:00+00:00")
    stats = RunStats(profiles_processed=2, profiles_added=2)
    assert repo.finalize(run.id, status="completed", completed_at="2024-01-01T00:01:00+00:00", stats=stats)
    assert not repo.finalize(run.id, status="failed", completed_at="2024-01-01T00:02:00+00:00", stats=RunStats())

    stored = repo.get(run.id)
    assert stored.status == "completed"
    assert stored.stats.profiles_added == 2
    assert stored.error_message is None


def test_stale_runs_are_running_and_old(conn):
    repo = RunsRepo(conn)
    old = repo.create("incremental", "user-1", "2024-01-01T00:00:00+00:00")
    done = repo.create("incremental", "user-1", "2024-01-01T00:00:01+00:00")
    repo.create("incremental", "user-1", "2024-01-02T00:00:00+00:00")
    repo.finalize(done.id, status="completed", completed_at="2024-01-01T00:00:02+00:00", stats=RunStats())

    stale = repo.list_stale("2024-01-01T12:00:00+00:00")
    assert [r.id for r in stale] == [old.id]


def test_change_log_append_and_order(conn):
    profile = _stored(conn)
    run = RunsRepo(conn).create("incremental", "user-1", "2024-01-01T00:00:00+00:00")
    repo = ChangesRepo(conn)
    entries = [
        ChangeEntry(profile_id=profile.id, etl_run_id=run.id, field_name="headline",
                    old_value="a", new_value="b", changed_at="2024-01-01T00:00:01+00:00"),
        ChangeEntry(profile_id=profile.id, etl_run_id=run.id, field_name="location",
                    old_value="x", new_value="y", changed_at="2024-01-01T00:00:01+00:00"),
    ]
    assert repo.append(entries) == 2
    assert repo.append([]) == 0
    assert [e.field_name for e in repo.list_for_profile(profile.id)] == ["location", "headline"]
    assert repo.count_for_run(run.id) == 2


class _UnreadableProfiles(ProfilesRepo):
    def get_by_id(self, profile_id):
        return None


def test_insert_unreadable_row_is_a_store_failure(conn):
    repo = _UnreadableProfiles(conn)
    with pytest.raises(StoreWriteFailed):
        repo.insert(
            normalize_profile(make_profile("p1")),
            data_hash="h1", validation_status="valid", validation_errors=[],
            user_id="user-1", now="2024-01-01T00:00:00+00:00",
        )
