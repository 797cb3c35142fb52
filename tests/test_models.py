from __future__ import annotations
import pytest
from pydantic import ValidationError
from models import (
    Difficulty,
    Priority,
    SchedulingPreferences,
    SessionStatus,
    StudySession,
    Subject,
)


def test_priority_and_difficulty_weights():
    assert [p.weight for p in (Priority.LOW, Priority.MEDIUM, Priority.HIGH)] == [1, 2, 3]
    assert [d.value_points for d in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)] == [1, 2, 3]


def test_session_defaults():
    s = StudySession(subject_id="x", title="Intro")
    assert s.duration == 25
    assert s.status == SessionStatus.PLANNED
    assert s.difficulty == Difficulty.MEDIUM
    assert s.scheduled_at is None


@pytest.mark.parametrize("duration", [0, -15])
def test_non_positive_duration_is_rejected(duration):
    with pytest.raises(ValidationError):
        StudySession(subject_id="x", title="Intro", duration=duration)


@pytest.mark.parametrize("field, value", [
    ("difficulty", "extreme"),
    ("type", "lecture"),
    ("status", "paused"),
    ("effectiveness", 6),
])
def test_unknown_categories_are_rejected(field, value):
    with pytest.raises(ValidationError):
        StudySession(subject_id="x", title="Intro", **{field: value})


def test_subject_rejects_unknown_priority_and_blank_name():
    with pytest.raises(ValidationError):
        Subject(name="Math", priority="urgent")
    with pytest.raises(ValidationError):
        Subject(name="   ")


def test_subject_name_is_stripped():
    assert Subject(name="  Physics ").name == "Physics"


@pytest.mark.parametrize("slots", [[], ["9am"], ["24:00"], ["09:60"]])
def test_preferences_reject_bad_start_times(slots):
    with pytest.raises(ValidationError):
        SchedulingPreferences(preferred_start_times=slots)


def test_preferences_reject_zero_budget():
    with pytest.raises(ValidationError):
        SchedulingPreferences(daily_time_budget=0)


def test_terminal_statuses():
    assert SessionStatus.COMPLETED.is_terminal
    assert SessionStatus.SKIPPED.is_terminal
    assert not SessionStatus.PLANNED.is_terminal
    assert not SessionStatus.IN_PROGRESS.is_terminal
