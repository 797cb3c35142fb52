from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional
from models import (
    AppState,
    DailySchedule,
    ProgressEntry,
    SessionStatus,
    StudySession,
    Subject,
)


class InvalidTransition(ValueError):
    """Raised when a session is moved out of order, e.g. completing a planned one."""


def _require_status(session: StudySession, *allowed: SessionStatus) -> None:
    if session.status not in allowed:
        expected = " or ".join(s.value for s in allowed)
        raise InvalidTransition(
            f"Session {session.title!r} is {session.status.value}, expected {expected}."
        )


def start_session(session: StudySession, now: Optional[datetime] = None) -> StudySession:
    _require_status(session, SessionStatus.PLANNED)
    return session.model_copy(update={
        "status": SessionStatus.IN_PROGRESS,
        "started_at": now or datetime.now(),
    })


def complete_session(
    session: StudySession,
    effectiveness: int,
    actual_duration: Optional[int] = None,
    now: Optional[datetime] = None,
    notes: str = "",
) -> StudySession:
    _require_status(session, SessionStatus.IN_PROGRESS)
    end = now or datetime.now()
    if actual_duration is None:
        actual_duration = _elapsed_minutes(session.started_at, end, session.duration)
    return StudySession.model_validate({
        **session.model_dump(),
        "status": SessionStatus.COMPLETED,
        "completed_at": end,
        "actual_duration": actual_duration,
        "effectiveness": effectiveness,
        "notes": notes or session.notes,
    })


def skip_session(
    session: StudySession,
    actual_duration: int = 0,
    now: Optional[datetime] = None,
    notes: str = "",
) -> StudySession:
    # A planned session may be skipped outright, a running one may be stopped
    _require_status(session, SessionStatus.PLANNED, SessionStatus.IN_PROGRESS)
    return StudySession.model_validate({
        **session.model_dump(),
        "status": SessionStatus.SKIPPED,
        "completed_at": now or datetime.now(),
        "actual_duration": actual_duration,
        "notes": notes or session.notes,
    })


def _elapsed_minutes(started_at: Optional[datetime], end: datetime, fallback: int) -> int:
    if started_at is None:
        return fallback
    return max(0, round((end - started_at).total_seconds() / 60))


def apply_schedule(
    sessions: List[StudySession],
    schedules: List[DailySchedule],
) -> List[StudySession]:
    """
    Copy proposed start times onto the matching planned sessions.

    When a session appears on several days the earliest slot wins. Status
    is left untouched.
    """
    proposed: Dict[str, datetime] = {}
    for daily in schedules:
        for s in daily.sessions:
            current = proposed.get(s.id)
            if current is None or s.scheduled_at < current:
                proposed[s.id] = s.scheduled_at

    out: List[StudySession] = []
    for session in sessions:
        start = proposed.get(session.id)
        if start is not None and session.status == SessionStatus.PLANNED:
            session = session.model_copy(update={"scheduled_at": start})
        out.append(session)
    return out


def record_progress(
    progress: List[ProgressEntry],
    session: StudySession,
    mood: Optional[int] = None,
) -> List[ProgressEntry]:
    """Merge a finished session into the per-(subject, day) history."""
    _require_status(session, SessionStatus.COMPLETED, SessionStatus.SKIPPED)
    day = (session.completed_at or datetime.now()).date()
    entry = ProgressEntry(
        subject_id=session.subject_id,
        session_id=session.id,
        day=day,
        study_time=session.actual_duration or 0,
        sessions_completed=1 if session.status == SessionStatus.COMPLETED else 0,
        effectiveness=session.effectiveness,
        mood=mood,
        notes=session.notes,
    )

    out = list(progress)
    for i, existing in enumerate(out):
        if existing.day == entry.day and existing.subject_id == entry.subject_id:
            out[i] = existing.model_copy(update={
                "study_time": existing.study_time + entry.study_time,
                "sessions_completed": existing.sessions_completed + entry.sessions_completed,
                "effectiveness": entry.effectiveness or existing.effectiveness,
                "mood": entry.mood or existing.mood,
                "notes": entry.notes or existing.notes,
            })
            return out
    out.append(entry)
    return out


def update_subject_totals(subject: Subject, session: StudySession) -> Subject:
    completed = 1 if session.status == SessionStatus.COMPLETED else 0
    return subject.model_copy(update={
        "total_study_time": subject.total_study_time + (session.actual_duration or 0),
        "sessions_completed": subject.sessions_completed + completed,
        "updated_at": datetime.now(),
    })


def finish_session(
    state: AppState,
    session_id: str,
    effectiveness: int,
    actual_duration: Optional[int] = None,
    stopped: bool = False,
    mood: Optional[int] = None,
    notes: str = "",
    now: Optional[datetime] = None,
) -> StudySession:
    """Close a running session and fold it into progress and subject totals."""
    session = next((s for s in state.sessions if s.id == session_id), None)
    if session is None:
        raise KeyError(session_id)

    if stopped:
        skipped = skip_session(session, actual_duration or 0, now=now, notes=notes)
        finished = StudySession.model_validate({
            **skipped.model_dump(),
            "effectiveness": effectiveness,
        })
    else:
        finished = complete_session(session, effectiveness, actual_duration, now=now, notes=notes)

    state.sessions = [finished if s.id == session_id else s for s in state.sessions]
    state.progress = record_progress(state.progress, finished, mood=mood)
    state.subjects = [
        update_subject_totals(s, finished) if s.id == finished.subject_id else s
        for s in state.subjects
    ]
    return finished


def add_subject(state: AppState, subject: Subject) -> None:
    if any(s.name.lower() == subject.name.lower() for s in state.subjects):
        raise ValueError("A subject with this name already exists.")
    state.subjects.append(subject)


def delete_subject(state: AppState, subject_id: str) -> None:
    state.subjects = [s for s in state.subjects if s.id != subject_id]
    state.sessions = [s for s in state.sessions if s.subject_id != subject_id]
    state.progress = [p for p in state.progress if p.subject_id != subject_id]
