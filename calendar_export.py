from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple
from icalendar import Calendar, Event as IcsEvent
from models import DailySchedule


def _to_utc(value: datetime) -> datetime:
    # Naive values are local wall-clock times
    return value.astimezone(timezone.utc)


def schedules_to_ics(schedules: List[DailySchedule]) -> Tuple[bytes, List[str]]:
    cal = Calendar()
    cal.add("PRODID", "-//Study Scheduler//Local//")
    cal.add("version", "2.0")
    cal.add("X-WR-CALNAME", "Study Schedule")

    warnings: List[str] = []
    seen: Dict[str, int] = {}

    for daily in sorted(schedules, key=lambda d: d.day):
        for s in daily.sessions:
            seen[s.id] = seen.get(s.id, 0) + 1
            start = _to_utc(s.scheduled_at)
            end = start + timedelta(minutes=s.duration)
            subject_name = s.subject.name if s.subject else "Unknown subject"

            event = IcsEvent()
            event.add("uid", f"{s.id}-{start.strftime('%Y%m%dT%H%M')}@study-scheduler")
            event.add("summary", f"{s.type.label}: {s.title} ({subject_name})")
            event.add("dtstart", start)
            event.add("dtend", end)
            event.add(
                "description",
                f"{s.duration} minutes, {s.difficulty.value} difficulty, priority score {s.priority:g}.",
            )
            cal.add_component(event)

    for daily in schedules:
        for s in daily.sessions:
            if seen.get(s.id, 0) > 1:
                warnings.append(f"{s.title} is scheduled on {seen[s.id]} different days.")
                seen[s.id] = 0

    return cal.to_ical(), warnings
