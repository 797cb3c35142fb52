from __future__ import annotations
import json
from datetime import date
import pytest
from pydantic import ValidationError
from models import AppState, ProgressEntry, SchedulingPreferences
from paths import get_data_dir
from profiles import (
    create_profile,
    delete_profile,
    export_state,
    import_state,
    list_profiles,
    load_profile,
    save_profile,
)
from storage import data_path, load_json, save_json


def test_data_dir_follows_environment(data_dir):
    assert get_data_dir() == data_dir
    assert data_dir.is_dir()
    assert data_path("x.json") == data_dir / "x.json"


def test_save_and_load_json(data_dir):
    path = data_dir / "thing.json"
    save_json(path, {"a": [1, 2]})
    assert load_json(path) == {"a": [1, 2]}
    assert not path.with_suffix(".json.tmp").exists()


def test_missing_file_returns_default(data_dir):
    assert load_json(data_dir / "nope.json", {"profiles": []}) == {"profiles": []}
    assert load_json(data_dir / "nope.json") == {}


def test_corrupt_file_is_backed_up_and_reset(data_dir, caplog):
    path = data_dir / "broken.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level("WARNING"):
        assert load_json(path, {"ok": True}) == {"ok": True}

    assert path.with_suffix(".json.bak").read_text(encoding="utf-8") == "{not json"
    assert json.loads(path.read_text(encoding="utf-8")) == {"ok": True}
    assert "not valid JSON" in caplog.text


def test_profile_round_trip(subjects, make_session):
    state = AppState(
        subjects=[subjects["high"]],
        sessions=[make_session(subjects["high"], title="Limits")],
        progress=[ProgressEntry(subject_id="s-high", day=date(2024, 1, 1), study_time=30)],
        preferences=SchedulingPreferences(daily_time_budget=90),
    )
    save_profile("Semester A", state)

    loaded = load_profile("Semester A")
    assert loaded.subjects[0].name == "Math"
    assert loaded.sessions[0].title == "Limits"
    assert loaded.progress[0].study_time == 30
    assert loaded.preferences.daily_time_budget == 90
    assert "Semester A" in list_profiles()


def test_invalid_profile_file_resets(data_dir):
    save_profile("bad", AppState())
    path = data_dir / "state__bad.json"
    path.write_text(json.dumps({"sessions": [{"title": "x", "duration": 0}]}), encoding="utf-8")
    assert load_profile("bad").sessions == []


def test_create_profile_rules():
    create_profile("Exams")
    with pytest.raises(ValueError):
        create_profile("exams")
    with pytest.raises(ValueError):
        create_profile("   ")


def test_deleting_last_profile_recreates_default():
    create_profile("Only")
    for name in list_profiles():
        delete_profile(name)
    assert list_profiles() == ["default"]


def test_export_and_import(subjects):
    source = AppState(subjects=[subjects["high"]], preferences=SchedulingPreferences(max_sessions_per_day=3))
    payload = export_state(source)
    assert "export_date" in payload

    target = AppState(profile="other", subjects=[subjects["low"]])
    imported = import_state(target, {"subjects": payload["subjects"]})
    assert [s.name for s in imported.subjects] == ["Math"]
    assert imported.preferences.max_sessions_per_day == 8
    assert imported.profile == "other"

    imported = import_state(target, payload)
    assert imported.preferences.max_sessions_per_day == 3


def test_import_rejects_bad_payload():
    with pytest.raises(ValidationError):
        import_state(AppState(), {"preferences": {"daily_time_budget": -5}})


def test_default_data_dir_on_linux(tmp_path, monkeypatch):
    monkeypatch.delenv("STUDY_SCHEDULER_DATA_DIR")
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr("sys.platform", "linux")
    assert get_data_dir(create=False) == tmp_path / ".local" / "share" / "study-scheduler"
