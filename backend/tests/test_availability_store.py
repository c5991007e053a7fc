import pytest

from app.services.availability_store import normalize_template
from app.services.document_store import DocumentStoreError
from app.services.errors import AvailabilitySaveError, ProfileReadError


def test_load_without_document_yields_empty_profile(profiles):
    profile = profiles.load("first_timer")
    assert profile.exists is False
    assert profile.availability == {}
    assert profile.metadata.service is None
    assert profile.metadata.tags == []


def test_disjoint_saves_do_not_overwrite_each_other(profiles):
    profiles.save("p1", metadata={"rate": "$40/h", "mode": "online"})
    profiles.save("p1", template={"monday": ["10:00"]})
    profiles.save("p1", metadata={"tags": ["yoga", "beginner"]})

    profile = profiles.load("p1")
    assert profile.availability == {"monday": ["10:00"]}
    assert profile.metadata.rate == "$40/h"
    assert profile.metadata.mode == "online"
    assert profile.metadata.tags == ["yoga", "beginner"]


def test_save_with_nothing_supplied_writes_nothing(profiles, documents):
    profiles.save("p1")
    assert documents.get("users", "p1") is None


def test_save_prunes_empty_days_and_duplicates(profiles, documents):
    profiles.save("p1", template={"monday": [], "tuesday": ["09:00", "09:00", "13:00"]})
    assert documents.get("users", "p1")["availability"] == {"tuesday": ["09:00", "13:00"]}


def test_metadata_is_stored_as_top_level_fields(profiles, documents):
    profiles.save("p1", metadata={"max_bookings_per_day": 4, "buffer_time": "15 min"}, display_name="Kai")
    stored = documents.get("users", "p1")
    assert stored["maxBookingsPerDay"] == 4
    assert stored["bufferTime"] == "15 min"
    assert stored["name"] == "Kai"


def test_unknown_metadata_field_is_rejected(profiles):
    with pytest.raises(ValueError):
        profiles.save("p1", metadata={"colour": "blue"})


def test_normalize_template_ignores_unknown_days_and_bad_values():
    assert normalize_template({"funday": ["10:00"], "monday": ["10:00", 7, ""], "sunday": "10:00"}) == {
        "monday": ["10:00"]
    }
    assert normalize_template(None) == {}


def test_malformed_metadata_on_disk_does_not_break_load(profiles, documents):
    documents.set("users", "p1", {"mode": "telepathy", "availability": {"friday": ["08:00"]}})
    profile = profiles.load("p1")
    assert profile.metadata.mode is None
    assert profile.availability == {"friday": ["08:00"]}


def test_create_profile_starts_empty(profiles, documents):
    profiles.create_profile(uid="u1", email="u1@example.com")
    assert documents.get("users", "u1") == {"uid": "u1", "email": "u1@example.com", "availability": {}}


def test_list_providers_excludes_caller(profiles):
    profiles.create_profile(uid="me", email="me@example.com")
    profiles.create_profile(uid="other", email="other@example.com")
    assert [profile.uid for profile in profiles.list_providers(exclude_user_id="me")] == ["other"]


def test_display_name_falls_back_to_unknown(profiles):
    profiles.create_profile(uid="nameless", email="n@example.com")
    profiles.save("blank", display_name="   ")
    profiles.save("named", display_name="Rosa")
    assert profiles.display_name_for("missing") == "Unknown"
    assert profiles.display_name_for("nameless") == "Unknown"
    assert profiles.display_name_for("blank") == "Unknown"
    assert profiles.display_name_for("named") == "Rosa"


def test_update_profile_reports_generic_failure(profiles, monkeypatch):
    def broken_merge(*_args, **_kwargs):
        raise DocumentStoreError("disk full")

    monkeypatch.setattr(profiles.documents, "merge", broken_merge)
    with pytest.raises(AvailabilitySaveError) as excinfo:
        profiles.update_profile("p1", metadata={"rate": "10"})
    assert str(excinfo.value) == "Failed to save profile."
    assert excinfo.value.__cause__ is None


def test_list_providers_reports_read_failure(profiles, monkeypatch):
    def broken_scan(*_args, **_kwargs):
        raise DocumentStoreError("locked")

    monkeypatch.setattr(profiles.documents, "scan", broken_scan)
    with pytest.raises(ProfileReadError):
        profiles.list_providers()
