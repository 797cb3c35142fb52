from __future__ import annotations
from datetime import timedelta
from icalendar import Calendar
from calendar_export import schedules_to_ics
from pdf_export import schedules_to_pdf
from planner import generate_weekly_schedule


def _week(subjects, make_session, preferences, now, **kwargs):
    sessions = [
        make_session(subjects["high"], id="a", title="Algebra", duration=60),
        make_session(subjects["low"], id="b", title="Drawing", duration=30),
    ]
    return generate_weekly_schedule(sessions, list(subjects.values()), preferences, start=now, **kwargs)


def test_ics_has_one_event_per_scheduled_session(subjects, make_session, preferences, now):
    week = _week(subjects, make_session, preferences, now, exclude_already_scheduled=True)
    data, warnings = schedules_to_ics(week)

    events = [c for c in Calendar.from_ical(data).walk() if c.name == "VEVENT"]
    assert len(events) == 2
    summaries = sorted(str(e.get("SUMMARY")) for e in events)
    assert summaries == ["Study: Algebra (Math)", "Study: Drawing (Art)"]
    first = next(e for e in events if "Algebra" in str(e.get("SUMMARY")))
    assert first.decoded("DTEND") - first.decoded("DTSTART") == timedelta(minutes=60)
    assert warnings == []


def test_ics_warns_about_repeated_sessions(subjects, make_session, preferences, now):
    week = _week(subjects, make_session, preferences, now)
    _, warnings = schedules_to_ics(week)
    assert len(warnings) == 2
    assert "Algebra is scheduled on 5 different days." in warnings


def test_ics_empty():
    data, warnings = schedules_to_ics([])
    assert b"BEGIN:VCALENDAR" in data
    assert warnings == []


def test_pdf_renders(subjects, make_session, preferences, now):
    week = _week(subjects, make_session, preferences, now)
    pdf = schedules_to_pdf(week, preferences, streak=3)
    assert pdf.startswith(b"%PDF")


def test_pdf_renders_without_schedules(preferences):
    assert schedules_to_pdf([], preferences).startswith(b"%PDF")
