from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional
from models import (
    ProgressEntry,
    SchedulingPreferences,
    SessionStatus,
    StudySession,
    Subject,
)


def as_local_naive(value: datetime) -> datetime:
    if value.tzinfo:
        return value.astimezone().replace(tzinfo=None)
    return value


def get_recent_study_time(
    subject_id: str,
    progress: List[ProgressEntry],
    days: int = 7,
    today: Optional[date] = None,
) -> int:
    """
    Minutes studied for a subject over the trailing window
    [today - days, today], both ends inclusive.
    """
    today = today or date.today()
    cutoff = today - timedelta(days=days)
    return sum(
        p.study_time
        for p in progress
        if p.subject_id == subject_id and cutoff <= p.day <= today
    )


def calculate_study_streak(
    progress: List[ProgressEntry],
    today: Optional[date] = None,
) -> int:
    """
    Count consecutive calendar days, ending today, with study time > 0.

    Entries are grouped per day first, so several subjects studied on the
    same day count once. Days after `today` are ignored.
    """
    today = today or date.today()
    study_days = sorted(
        {p.day for p in progress if p.study_time > 0 and p.day <= today},
        reverse=True,
    )

    streak = 0
    expected = today
    for d in study_days:
        if d != expected:
            break
        streak += 1
        expected = expected - timedelta(days=1)
    return streak


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m" if hours else f"{mins}m"


def _average_effectiveness(entries: List[ProgressEntry]) -> float:
    if not entries:
        return 0.0
    return sum(p.effectiveness or 0 for p in entries) / len(entries)


def get_today_stats(
    progress: List[ProgressEntry],
    preferences: SchedulingPreferences,
    today: Optional[date] = None,
) -> dict:
    today = today or date.today()
    todays = [p for p in progress if p.day == today]
    study_time = sum(p.study_time for p in todays)
    goal = preferences.daily_time_budget
    return {
        "study_time": study_time,
        "sessions_completed": sum(p.sessions_completed for p in todays),
        "goal_progress": min(study_time / goal * 100, 100.0) if goal else 0.0,
    }


def get_weekly_stats(
    progress: List[ProgressEntry],
    today: Optional[date] = None,
) -> dict:
    today = today or date.today()
    week_ago = today - timedelta(days=7)
    weekly = [p for p in progress if week_ago <= p.day <= today]
    return {
        "total_study_time": sum(p.study_time for p in weekly),
        "total_sessions": sum(p.sessions_completed for p in weekly),
        "average_effectiveness": _average_effectiveness(weekly),
    }


def get_subject_stats(
    subjects: List[Subject],
    progress: List[ProgressEntry],
) -> List[dict]:
    by_subject: Dict[str, List[ProgressEntry]] = {}
    for p in progress:
        by_subject.setdefault(p.subject_id, []).append(p)

    rows = []
    for s in subjects:
        entries = by_subject.get(s.id, [])
        rows.append({
            "subject_id": s.id,
            "name": s.name,
            "color": s.color,
            "priority": s.priority.value,
            "total_study_time": sum(p.study_time for p in entries),
            "total_sessions": sum(p.sessions_completed for p in entries),
            "average_effectiveness": _average_effectiveness(entries),
        })

    rows.sort(key=lambda r: r["total_study_time"], reverse=True)
    return rows


def get_upcoming_sessions(
    sessions: List[StudySession],
    subjects: List[Subject],
    limit: int = 5,
) -> List[StudySession]:
    # Sessions with a deadline come first (earliest first), then by subject priority
    weights = {s.id: s.priority.weight for s in subjects}
    planned = [s for s in sessions if s.status == SessionStatus.PLANNED]

    def _key(s: StudySession) -> tuple:
        if s.deadline is not None:
            return (0, as_local_naive(s.deadline), 0)
        return (1, datetime.max, -weights.get(s.subject_id, 0))

    return sorted(planned, key=_key)[:limit]
