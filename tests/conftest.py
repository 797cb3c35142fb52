from __future__ import annotations
from datetime import datetime
import pytest
from models import SchedulingPreferences, StudySession, Subject


# Monday morning, inside every favourable window for medium difficulty
MONDAY_10AM = datetime(2024, 3, 4, 10, 0)


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    path = tmp_path / "data"
    monkeypatch.setenv("STUDY_SCHEDULER_DATA_DIR", str(path))
    return path


@pytest.fixture
def now() -> datetime:
    return MONDAY_10AM


@pytest.fixture
def subjects() -> dict[str, Subject]:
    return {
        "high": Subject(id="s-high", name="Math", priority="high"),
        "medium": Subject(id="s-medium", name="History", priority="medium"),
        "low": Subject(id="s-low", name="Art", priority="low"),
    }


@pytest.fixture
def preferences() -> SchedulingPreferences:
    return SchedulingPreferences(
        daily_time_budget=120,
        session_length=25,
        break_length=5,
        study_days_per_week=5,
        preferred_start_times=["09:00", "14:00", "19:00"],
        max_sessions_per_day=8,
    )


@pytest.fixture
def make_session():
    def _make(subject: Subject | str, **kwargs) -> StudySession:
        subject_id = subject if isinstance(subject, str) else subject.id
        kwargs.setdefault("title", "Chapter 1")
        return StudySession(subject_id=subject_id, **kwargs)
    return _make
