from __future__ import annotations

from models.profile_record import NormalizedProfile
from services.change_tracker import TRACKED_FIELDS, TrackedField, diff, to_entries


def _p(**kw):
    return NormalizedProfile(linkedin_id="p1", **kw)


def test_single_headline_change_yields_one_fragment():
    changes = diff(_p(full_name="A", headline="H1"), _p(full_name="A", headline="H2"))
    assert len(changes) == 1
    assert changes[0].field is TrackedField.HEADLINE
    assert (changes[0].old_value, changes[0].new_value) == ("H1", "H2")


def test_structured_fields_are_not_tracked():
    old = _p(skills=["a"], experience=[{"x": 1}], education=[])
    new = _p(skills=["b"], experience=[], education=[{"y": 2}])
    assert diff(old, new) == []


def test_emission_follows_declared_order():
    old = _p(full_name="A", headline="H", location="L", summary="S", connections_count=1)
    new = _p(full_name="B", headline="I", location="M", summary="T", connections_count=2)
    assert [c.field for c in diff(old, new)] == list(TRACKED_FIELDS)


def test_connections_rendered_as_text():
    (change,) = diff(_p(connections_count=0), _p(connections_count=500))
    assert (change.old_value, change.new_value) == ("0", "500")


def test_restricting_tracked_set():
    old = _p(full_name="A", headline="H1")
    new = _p(full_name="B", headline="H2")
    assert [c.field for c in diff(old, new, tracked=[TrackedField.FULL_NAME])] == [TrackedField.FULL_NAME]


def test_to_entries_carries_run_and_profile():
    changes = diff(_p(location="Berlin"), _p(location="Munich"))
    (entry,) = to_entries(changes, profile_id=7, run_id=3, changed_at="2024-01-01T00:00:00+00:00")
    assert entry.profile_id == 7 and entry.etl_run_id == 3
    assert entry.field_name == "location"
    assert entry.old_value == "Berlin" and entry.new_value == "Munich"
