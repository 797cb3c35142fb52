from __future__ import annotations
import math
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Set, Union
from analytics import as_local_naive, get_recent_study_time
from models import (
    DailySchedule,
    ProgressEntry,
    ScheduledSession,
    SchedulingPreferences,
    ScoredSession,
    SessionStatus,
    SessionType,
    StudySession,
    Subject,
)
from time_windows import (
    is_good_time_for_practice,
    is_good_time_for_review,
    is_optimal_time_for_difficulty,
)

RECENCY_WINDOW_DAYS = 3
HEAVY_RECENT_MINUTES = 180


def _as_datetime(when: Union[date, datetime, None]) -> datetime:
    if when is None:
        return datetime.now()
    if isinstance(when, datetime):
        return when
    return datetime.combine(when, time.min)


def days_until_deadline(deadline: datetime, now: datetime) -> int:
    diff = as_local_naive(deadline) - as_local_naive(now)
    return math.ceil(diff.total_seconds() / 86400)


def _deadline_bonus(deadline: Optional[datetime], now: datetime) -> float:
    if deadline is None:
        return 0.0
    days_left = days_until_deadline(deadline, now)
    if days_left <= 1:
        return 20.0
    if days_left <= 3:
        return 15.0
    if days_left <= 7:
        return 10.0
    return 0.0


def calculate_session_priority(
    session: StudySession,
    subject: Optional[Subject],
    instant: datetime,
    progress: List[ProgressEntry],
) -> float:
    """
    Score one session; higher means it should be studied sooner.

    Subject weight, difficulty (boosted when `instant` suits it), deadline
    urgency, recent load on the subject and type/time fit are added up.
    The result never drops below zero.
    """
    score = 0.0

    if subject is not None:
        score += subject.priority.weight * 10

    time_bonus = 1.5 if is_optimal_time_for_difficulty(instant, session.difficulty) else 1.0
    score += session.difficulty.value_points * 5 * time_bonus

    score += _deadline_bonus(session.deadline, instant)

    subject_id = subject.id if subject is not None else session.subject_id
    recent = get_recent_study_time(
        subject_id, progress, days=RECENCY_WINDOW_DAYS, today=instant.date()
    )
    if recent > HEAVY_RECENT_MINUTES:
        score -= 10
    if recent == 0:
        score += 5

    if session.type == SessionType.REVIEW and is_good_time_for_review(instant):
        score += 5
    if session.type == SessionType.PRACTICE and is_good_time_for_practice(instant):
        score += 5

    return max(0.0, score)


def calculate_start_time(
    when: Union[date, datetime],
    position: int,
    preferences: SchedulingPreferences,
) -> datetime:
    slots = preferences.preferred_start_times
    day_start = _as_datetime(when)

    def _at(slot: str) -> datetime:
        hours, minutes = (int(x) for x in slot.split(":"))
        return day_start.replace(hour=hours, minute=minutes, second=0, microsecond=0)

    if position < len(slots):
        return _at(slots[position])

    # Past the preferred slots: ladder from the first slot in fixed steps
    step = preferences.session_length + preferences.break_length
    return _at(slots[0]) + timedelta(minutes=position * step)


def rank_sessions(
    sessions: List[StudySession],
    subjects: List[Subject],
    instant: datetime,
    progress: List[ProgressEntry] | None = None,
) -> List[ScoredSession]:
    progress = progress or []
    by_id: Dict[str, Subject] = {s.id: s for s in subjects}

    scored: List[ScoredSession] = []
    for session in sessions:
        if session.status != SessionStatus.PLANNED:
            continue
        subject = by_id.get(session.subject_id)
        priority = calculate_session_priority(session, subject, instant, progress)
        scored.append(ScoredSession(**{
            **session.model_dump(),
            "priority": priority,
            "subject": subject,
        }))

    scored.sort(key=lambda s: (-s.priority, s.id))
    return scored


def generate_daily_schedule(
    sessions: List[StudySession],
    subjects: List[Subject],
    preferences: SchedulingPreferences,
    when: Union[date, datetime, None] = None,
    progress: List[ProgressEntry] | None = None,
) -> DailySchedule:
    instant = _as_datetime(when)
    budget = preferences.daily_time_budget
    max_sessions = preferences.max_sessions_per_day

    picked: List[ScheduledSession] = []
    total = 0
    for s in rank_sessions(sessions, subjects, instant, progress):
        if total + s.duration > budget or len(picked) >= max_sessions:
            continue
        picked.append(ScheduledSession(**{
            **s.model_dump(),
            "scheduled_at": calculate_start_time(instant, len(picked), preferences),
        }))
        total += s.duration

    return DailySchedule(
        day=instant.date(),
        sessions=picked,
        total_time=total,
        session_count=len(picked),
        efficiency=(total / budget) if picked else 0.0,
    )


def generate_weekly_schedule(
    sessions: List[StudySession],
    subjects: List[Subject],
    preferences: SchedulingPreferences,
    start: Union[date, datetime, None] = None,
    progress: List[ProgressEntry] | None = None,
    exclude_already_scheduled: bool = False,
) -> List[DailySchedule]:
    """
    Pack each study day of the 7 days beginning at `start`.

    Weekends are left out when studying 5 days a week or fewer. Each day is
    packed from the full planned pool unless `exclude_already_scheduled`
    is set, in which case a session placed on one day is not offered again.
    """
    start_at = _as_datetime(start)
    skip_weekends = preferences.study_days_per_week <= 5
    placed: Set[str] = set()

    week: List[DailySchedule] = []
    for i in range(7):
        d = start_at + timedelta(days=i)
        if skip_weekends and d.weekday() >= 5:
            continue
        pool = [s for s in sessions if s.id not in placed]
        daily = generate_daily_schedule(pool, subjects, preferences, d, progress)
        if exclude_already_scheduled:
            placed.update(s.id for s in daily.sessions)
        week.append(daily)
    return week


def suggest_break_duration(
    study_minutes: int,
    session_count: int,
    preferences: SchedulingPreferences | None = None,
) -> int:
    preferences = preferences or SchedulingPreferences()
    # Long break after every 4th completed session
    if session_count and session_count % 4 == 0:
        long_break = preferences.long_break_length
        return long_break * 2 if study_minutes >= 120 else long_break
    return preferences.break_length
