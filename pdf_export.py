from __future__ import annotations
from io import BytesIO
from typing import List
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from analytics import format_minutes
from models import DailySchedule, SchedulingPreferences


def schedules_to_pdf(
    schedules: List[DailySchedule],
    preferences: SchedulingPreferences,
    streak: int = 0,
) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=letter,
        leftMargin=40,
        rightMargin=40,
        topMargin=40,
        bottomMargin=40,
    )
    styles = getSampleStyleSheet()
    elems = []

    ordered = sorted(schedules, key=lambda d: d.day)
    if ordered:
        title = f"Study Schedule: {ordered[0].day.isoformat()} - {ordered[-1].day.isoformat()}"
    else:
        title = "Study Schedule"
    elems.append(Paragraph(title, styles["Title"]))
    elems.append(Spacer(1, 10))
    elems.append(Paragraph(
        f"Daily budget: {preferences.daily_time_budget}m | Max sessions: {preferences.max_sessions_per_day} "
        f"| Session: {preferences.session_length}m | Break: {preferences.break_length}m "
        f"| Study days/week: {preferences.study_days_per_week}",
        styles["Normal"],
    ))
    elems.append(Paragraph(f"Current streak: {streak} day(s)", styles["Normal"]))
    elems.append(Spacer(1, 12))

    for daily in ordered:
        elems.append(Paragraph(daily.day.strftime("%A, %Y-%m-%d"), styles["Heading3"]))
        if not daily.sessions:
            elems.append(Paragraph("Nothing scheduled.", styles["Normal"]))
            elems.append(Spacer(1, 8))
            continue

        table_data = [["Start", "Session", "Subject", "Type", "Minutes", "Score"]]
        for s in daily.sessions:
            table_data.append([
                s.scheduled_at.strftime("%H:%M"),
                s.title,
                s.subject.name if s.subject else "-",
                s.type.label,
                str(s.duration),
                f"{s.priority:g}",
            ])
        table_data.append([
            "Total", "", "", "", format_minutes(daily.total_time), f"{daily.efficiency:.0%}",
        ])

        table = Table(table_data, hAlign="LEFT", colWidths=[45, 160, 110, 65, 55, 45])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("BACKGROUND", (0, -1), (-1, -1), colors.whitesmoke),
            ("ALIGN", (4, 1), (5, -1), "RIGHT"),
        ]))
        elems.append(table)
        elems.append(Spacer(1, 8))

    doc.build(elems)
    return buf.getvalue()
