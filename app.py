from __future__ import annotations
import json
import logging
import streamlit as st
import pandas as pd
from datetime import date, datetime, time
from pydantic import ValidationError

from analytics import (
    calculate_study_streak,
    format_minutes,
    get_subject_stats,
    get_today_stats,
    get_upcoming_sessions,
    get_weekly_stats,
)
from calendar_export import schedules_to_ics
from models import (
    AppState,
    DailySchedule,
    Difficulty,
    Priority,
    SchedulingPreferences,
    SessionStatus,
    SessionType,
    StudySession,
    Subject,
)
from pdf_export import schedules_to_pdf
from planner import generate_daily_schedule, generate_weekly_schedule, suggest_break_duration
from profiles import (
    create_profile,
    delete_profile,
    export_state,
    import_state,
    list_profiles,
    load_profile,
    save_profile,
)
from sessions import (
    InvalidTransition,
    add_subject,
    apply_schedule,
    delete_subject,
    finish_session,
    skip_session,
    start_session,
)


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

PRIORITY_OPTIONS = [p.value for p in Priority]
DIFFICULTY_OPTIONS = [d.value for d in Difficulty]
TYPE_OPTIONS = [t.value for t in SessionType]
PRESET_COLORS = ["#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#F97316", "#06B6D4", "#EC4899"]

st.set_page_config(page_title="Study Scheduler", page_icon="📚", layout="wide")


def _ensure_session_state() -> list[str]:
    profiles = list_profiles()
    if not profiles:
        create_profile("default")
        profiles = list_profiles()

    if "profile_name" not in st.session_state:
        st.session_state.profile_name = profiles[0]

    if st.session_state.profile_name not in profiles:
        st.session_state.profile_name = profiles[0]

    if "state" not in st.session_state:
        st.session_state.state = load_profile(st.session_state.profile_name)

    return profiles


def _switch_profile(name: str) -> None:
    st.session_state.profile_name = name
    st.session_state.state = load_profile(name)
    st.session_state.pop("generated", None)


def _queue_toast(message: str) -> None:
    st.session_state.toast_message = message


def _flush_toast() -> None:
    message = st.session_state.pop("toast_message", None)
    if message:
        st.toast(message)


def _subject_names(state: AppState) -> dict[str, str]:
    return {s.id: s.name for s in state.subjects}


def _schedule_rows(schedules: list[DailySchedule]) -> list[dict]:
    rows = []
    for daily in schedules:
        for s in daily.sessions:
            rows.append({
                "Date": daily.day,
                "Start": s.scheduled_at.strftime("%H:%M"),
                "Session": s.title,
                "Subject": s.subject.name if s.subject else "Unknown",
                "Type": s.type.label,
                "Difficulty": s.difficulty.value,
                "Minutes": s.duration,
                "Score": s.priority,
            })
    return rows


def render_dashboard(state: AppState) -> None:
    st.header("Dashboard")

    today_stats = get_today_stats(state.progress, state.preferences)
    weekly = get_weekly_stats(state.progress)
    streak = calculate_study_streak(state.progress)

    a, b, c, d = st.columns(4)
    a.metric("Studied today", format_minutes(today_stats["study_time"]))
    b.metric("Sessions today", today_stats["sessions_completed"])
    c.metric("Daily goal", f"{today_stats['goal_progress']:.0f}%")
    d.metric("Streak", f"{streak} day(s)")
    st.progress(today_stats["goal_progress"] / 100)

    st.divider()
    st.subheader("Last 7 days")
    w1, w2, w3 = st.columns(3)
    w1.metric("Study time", format_minutes(weekly["total_study_time"]))
    w2.metric("Sessions", weekly["total_sessions"])
    w3.metric("Avg effectiveness", f"{weekly['average_effectiveness']:.1f}/5")

    st.divider()
    st.subheader("Upcoming sessions")
    upcoming = get_upcoming_sessions(state.sessions, state.subjects)
    if not upcoming:
        st.info("No planned sessions.")
    else:
        names = _subject_names(state)
        st.table([
            {
                "Session": s.title,
                "Subject": names.get(s.subject_id, "Unknown"),
                "Minutes": s.duration,
                "Deadline": s.deadline.strftime("%Y-%m-%d %H:%M") if s.deadline else "",
            }
            for s in upcoming
        ])


def render_subjects(state: AppState) -> None:
    st.header("Subjects")

    st.subheader("Add subject")
    with st.form("add_subject_form", clear_on_submit=True):
        col1, col2, col3 = st.columns([2, 1, 1])
        with col1:
            name = st.text_input("Name", placeholder="Mathematics")
        with col2:
            priority = st.selectbox("Priority", PRIORITY_OPTIONS, index=1)
        with col3:
            color = st.selectbox("Color", PRESET_COLORS)
        submitted = st.form_submit_button("Add subject", type="primary")
        if submitted:
            try:
                add_subject(state, Subject(name=name, color=color, priority=priority))
            except (ValidationError, ValueError) as e:
                st.warning(str(e))
            else:
                save_profile(current_profile, state)
                st.toast("Subject added.")

    st.divider()
    if not state.subjects:
        st.info("No subjects yet.")
        return

    rows = [
        {
            "Select": False,
            "id": s.id,
            "Name": s.name,
            "Priority": s.priority.value,
            "Color": s.color,
            "Studied (m)": s.total_study_time,
            "Completed": s.sessions_completed,
        }
        for s in state.subjects
    ]
    df = pd.DataFrame(rows).set_index("id")
    edited = st.data_editor(
        df,
        hide_index=True,
        use_container_width=True,
        column_config={
            "Select": st.column_config.CheckboxColumn("Select"),
            "Name": st.column_config.TextColumn("Name"),
            "Priority": st.column_config.SelectboxColumn("Priority", options=PRIORITY_OPTIONS),
            "Color": st.column_config.SelectboxColumn("Color", options=PRESET_COLORS),
        },
        disabled=["Studied (m)", "Completed"],
        key=f"subjects_editor_{current_profile}",
    )

    edited_records = edited.reset_index().to_dict("records")
    selected_ids = [row["id"] for row in edited_records if row.get("Select")]
    selected_names = [row["Name"] for row in edited_records if row.get("Select")]

    col_apply, col_delete = st.columns([1, 1])

    if col_apply.button("Apply changes"):
        id_to_subject = {s.id: s for s in state.subjects}
        updated = []
        for row in edited_records:
            subject = id_to_subject.get(row["id"])
            if not subject:
                continue
            try:
                updated.append(Subject.model_validate({
                    **subject.model_dump(),
                    "name": str(row.get("Name") or ""),
                    "priority": row.get("Priority") or subject.priority,
                    "color": row.get("Color") or subject.color,
                    "updated_at": datetime.now(),
                }))
            except ValidationError as e:
                st.warning(f"Could not update {subject.name}: {e.errors()[0]['msg']}")
                return
        state.subjects = updated
        save_profile(current_profile, state)
        _queue_toast("Subjects updated.")
        st.rerun()

    if col_delete.button("Delete selected"):
        if not selected_ids:
            st.warning("Select at least one subject to delete.")
        else:

            @st.dialog("Delete selected subjects?")
            def _confirm_subject_delete() -> None:
                st.write("This will remove the subjects, their sessions and their progress.")
                st.write(", ".join(selected_names))
                if st.button("Delete", type="primary"):
                    for subject_id in selected_ids:
                        delete_subject(state, subject_id)
                    save_profile(current_profile, state)
                    _queue_toast("Subjects deleted.")
                    st.rerun()

            _confirm_subject_delete()


def _render_finish_form(state: AppState, session: StudySession) -> None:
    with st.form(f"finish_form_{session.id}"):
        st.write(f"Finish **{session.title}**")
        col1, col2, col3 = st.columns(3)
        with col1:
            actual = st.number_input("Actual minutes", min_value=0, max_value=600, value=session.duration)
        with col2:
            effectiveness = st.select_slider("Effectiveness", options=[1, 2, 3, 4, 5], value=3)
        with col3:
            mood = st.select_slider("Mood", options=[1, 2, 3, 4, 5], value=3)
        notes = st.text_input("Notes")
        stopped = st.checkbox("Stopped early (mark as skipped)")
        if st.form_submit_button("Save", type="primary"):
            finish_session(
                state,
                session.id,
                effectiveness=int(effectiveness),
                actual_duration=int(actual),
                stopped=stopped,
                mood=int(mood),
                notes=notes.strip(),
            )
            save_profile(current_profile, state)
            if stopped:
                _queue_toast("Session saved as skipped.")
            else:
                done_today = get_today_stats(state.progress, state.preferences)["sessions_completed"]
                pause = suggest_break_duration(int(actual), done_today, state.preferences)
                _queue_toast(f"Session saved. Take a {pause}-minute break.")
            st.rerun()


def render_sessions(state: AppState) -> None:
    st.header("Sessions")

    if not state.subjects:
        st.info("Add a subject first.")
        return

    names = _subject_names(state)
    st.subheader("Add session")
    with st.form("add_session_form", clear_on_submit=True):
        col1, col2, col3 = st.columns([2, 2, 1])
        with col1:
            subject_id = st.selectbox("Subject", list(names), format_func=lambda x: names[x])
        with col2:
            title = st.text_input("Title", placeholder="Algebra review")
        with col3:
            duration = st.number_input("Minutes", min_value=5, max_value=480, value=state.preferences.session_length, step=5)
        col4, col5, col6, col7 = st.columns(4)
        with col4:
            session_type = st.selectbox("Type", TYPE_OPTIONS)
        with col5:
            difficulty = st.selectbox("Difficulty", DIFFICULTY_OPTIONS, index=1)
        with col6:
            has_deadline = st.checkbox("Has deadline")
            deadline_day = st.date_input("Deadline", value=date.today())
        with col7:
            deadline_time = st.time_input("Deadline time", value=time(23, 59))
        description = st.text_area("Description (optional)", height=80)
        if st.form_submit_button("Add session", type="primary"):
            try:
                session = StudySession(
                    subject_id=subject_id,
                    title=title,
                    description=description.strip(),
                    duration=int(duration),
                    type=session_type,
                    difficulty=difficulty,
                    deadline=datetime.combine(deadline_day, deadline_time) if has_deadline else None,
                )
            except ValidationError as e:
                st.warning(e.errors()[0]["msg"])
            else:
                state.sessions.append(session)
                save_profile(current_profile, state)
                st.toast("Session added.")

    st.divider()
    status_filter = st.multiselect(
        "Status", [s.value for s in SessionStatus], default=["planned", "in-progress"]
    )
    shown = [s for s in state.sessions if s.status.value in status_filter]
    if not shown:
        st.info("No sessions to show.")
        return

    for session in shown:
        with st.container(border=True):
            info, actions = st.columns([3, 2])
            with info:
                st.markdown(f"**{session.title}** · {names.get(session.subject_id, 'Unknown')}")
                scheduled = session.scheduled_at.strftime("%a %H:%M") if session.scheduled_at else "unscheduled"
                st.caption(
                    f"{session.type.label} · {session.difficulty.value} · {session.duration}m · "
                    f"{session.status.value} · {scheduled}"
                )
            with actions:
                b1, b2, b3 = st.columns(3)
                try:
                    if session.status == SessionStatus.PLANNED and b1.button("Start", key=f"start_{session.id}"):
                        started = start_session(session)
                        state.sessions = [started if s.id == session.id else s for s in state.sessions]
                        save_profile(current_profile, state)
                        st.rerun()
                    if session.status == SessionStatus.PLANNED and b2.button("Skip", key=f"skip_{session.id}"):
                        skipped = skip_session(session)
                        state.sessions = [skipped if s.id == session.id else s for s in state.sessions]
                        save_profile(current_profile, state)
                        st.rerun()
                except InvalidTransition as e:
                    st.warning(str(e))
                if b3.button("Delete", key=f"delete_{session.id}"):
                    state.sessions = [s for s in state.sessions if s.id != session.id]
                    save_profile(current_profile, state)
                    st.rerun()
            if session.status == SessionStatus.IN_PROGRESS:
                _render_finish_form(state, session)


def render_scheduler(state: AppState) -> None:
    st.header("Scheduler")

    planned = [s for s in state.sessions if s.status == SessionStatus.PLANNED]
    st.caption(f"{len(planned)} planned session(s) available.")

    col1, col2 = st.columns([1, 1])
    with col1:
        mode = st.radio("Schedule", ["Daily", "Weekly"], horizontal=True)
        day = st.date_input("Date", value=date.today(), disabled=mode == "Weekly")
    with col2:
        use_history = st.checkbox("Account for recent study load", value=False)
        no_repeats = st.checkbox("Don't repeat a session across days", value=False, disabled=mode == "Daily")

    if st.button("Generate schedule", type="primary"):
        history = state.progress if use_history else None
        if mode == "Daily":
            now = datetime.now()
            when = now if day == now.date() else datetime.combine(day, time(9, 0))
            generated = [generate_daily_schedule(state.sessions, state.subjects, state.preferences, when, history)]
        else:
            generated = generate_weekly_schedule(
                state.sessions,
                state.subjects,
                state.preferences,
                progress=history,
                exclude_already_scheduled=no_repeats,
            )
        st.session_state.generated = generated

    generated: list[DailySchedule] = st.session_state.get("generated") or []
    if not generated:
        st.info("Generate a schedule to preview it here.")
        return

    for daily in generated:
        st.subheader(daily.day.strftime("%A, %Y-%m-%d"))
        m1, m2, m3 = st.columns(3)
        m1.metric("Sessions", daily.session_count)
        m2.metric("Total", format_minutes(daily.total_time))
        m3.metric("Budget used", f"{daily.efficiency:.0%}")
        rows = _schedule_rows([daily])
        if rows:
            st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
        else:
            st.info("Nothing fits this day.")

    if st.button("Apply schedule"):
        state.sessions = apply_schedule(state.sessions, generated)
        state.schedules = generated
        state.last_generated_on = date.today()
        save_profile(current_profile, state)
        st.session_state.pop("generated", None)
        _queue_toast("Schedule applied.")
        st.rerun()

    st.divider()
    st.subheader("Exports")
    ics_bytes, ics_warnings = schedules_to_ics(generated)
    st.download_button(
        "Download ICS",
        data=ics_bytes,
        file_name=f"study_schedule_{generated[0].day.isoformat()}.ics",
        mime="text/calendar",
    )
    if ics_warnings:
        st.warning(" | ".join(ics_warnings))

    pdf_bytes = schedules_to_pdf(generated, state.preferences, calculate_study_streak(state.progress))
    st.download_button(
        "Download PDF",
        data=pdf_bytes,
        file_name=f"study_schedule_{generated[0].day.isoformat()}.pdf",
        mime="application/pdf",
    )


def render_progress(state: AppState) -> None:
    st.header("Progress")

    stats = get_subject_stats(state.subjects, state.progress)
    if not stats:
        st.info("No subjects yet.")
    else:
        df = pd.DataFrame([
            {
                "Subject": r["name"],
                "Priority": r["priority"],
                "Study time (m)": r["total_study_time"],
                "Sessions": r["total_sessions"],
                "Avg effectiveness": round(r["average_effectiveness"], 1),
            }
            for r in stats
        ])
        st.dataframe(df, use_container_width=True, hide_index=True)

    st.divider()
    st.subheader("History")
    if state.progress:
        names = _subject_names(state)
        history = pd.DataFrame([
            {
                "Date": p.day,
                "Subject": names.get(p.subject_id, "Unknown"),
                "Minutes": p.study_time,
                "Sessions": p.sessions_completed,
                "Effectiveness": p.effectiveness,
                "Mood": p.mood,
            }
            for p in state.progress
        ]).sort_values(by="Date", ascending=False)
        st.dataframe(history, use_container_width=True, hide_index=True)
        daily_totals = history.groupby("Date")["Minutes"].sum()
        st.bar_chart(daily_totals)
    else:
        st.info("No progress recorded yet.")

    st.divider()
    st.subheader("Backup")
    st.download_button(
        "Export data (JSON)",
        data=json.dumps(export_state(state), ensure_ascii=False, indent=2),
        file_name=f"study_scheduler_{current_profile}.json",
        mime="application/json",
    )
    uploaded = st.file_uploader("Import data", type=["json"], key="import_upload")
    if uploaded and st.button("Import", type="primary"):
        try:
            imported = import_state(state, json.loads(uploaded.read()))
        except (ValidationError, ValueError) as e:
            st.error(f"Could not import file: {e}")
        else:
            st.session_state.state = imported
            save_profile(current_profile, imported)
            _queue_toast("Data imported.")
            st.rerun()


def render_settings(state: AppState) -> None:
    st.header("Settings")

    prefs = state.preferences
    daily_budget = st.slider("Daily study goal (minutes)", 15, 600, prefs.daily_time_budget, 15)
    max_sessions = st.slider("Max sessions per day", 1, 16, prefs.max_sessions_per_day)
    study_days = st.slider("Study days per week", 1, 7, prefs.study_days_per_week)
    start_times = st.text_input(
        "Preferred start times (HH:MM, comma separated)",
        ", ".join(prefs.preferred_start_times),
    )

    with st.expander("Session lengths", expanded=False):
        session_length = st.number_input("Session length", 5, 180, prefs.session_length, 5)
        break_length = st.number_input("Break length", 0, 60, prefs.break_length)
        long_break = st.number_input("Long break length", 0, 120, prefs.long_break_length, 5)

    if st.button("Save settings", type="primary"):
        try:
            state.preferences = SchedulingPreferences(
                daily_time_budget=daily_budget,
                session_length=int(session_length),
                break_length=int(break_length),
                long_break_length=int(long_break),
                study_days_per_week=study_days,
                preferred_start_times=[t.strip() for t in start_times.split(",") if t.strip()],
                max_sessions_per_day=max_sessions,
            )
        except ValidationError as e:
            st.error(e.errors()[0]["msg"])
        else:
            save_profile(current_profile, state)
            st.toast("Settings saved.")

    if st.button("Reset current profile (keep settings)"):

        @st.dialog("Reset current profile?")
        def _confirm_reset() -> None:
            st.write("This will clear subjects, sessions, progress and schedules. Settings stay.")
            if st.button("Reset profile", type="primary"):
                state.subjects = []
                state.sessions = []
                state.progress = []
                state.schedules = []
                save_profile(current_profile, state)
                _queue_toast("Profile reset.")
                st.rerun()

        _confirm_reset()


profiles = _ensure_session_state()
state: AppState = st.session_state.state
current_profile = st.session_state.profile_name

st.title("Study Scheduler")
st.caption("Rank planned study sessions and pack them into your day or week.")
_flush_toast()

if "nav_page" not in st.session_state:
    st.session_state.nav_page = "Dashboard"
if not state.subjects:
    st.session_state.nav_page = "Subjects"

with st.sidebar:
    st.header("Profile")
    profiles = list_profiles()
    selected_profile = st.selectbox(
        "Active profile",
        options=profiles,
        index=profiles.index(current_profile) if current_profile in profiles else 0,
    )
    if selected_profile != current_profile:
        _switch_profile(selected_profile)
        st.rerun()

    with st.form("create_profile_form"):
        new_profile_name = st.text_input("New profile name", placeholder="e.g. Semester A")
        if st.form_submit_button("Create profile"):
            try:
                new_state = create_profile(new_profile_name)
            except ValueError as e:
                st.error(str(e))
            else:
                _queue_toast(f"Profile '{new_profile_name.strip()}' created.")
                st.session_state.profile_name = new_profile_name.strip()
                st.session_state.state = new_state
                st.rerun()

    if st.button("Delete profile", disabled=len(profiles) <= 1):

        @st.dialog("Delete profile?")
        def _confirm_delete_profile() -> None:
            st.write(f"Delete profile '{current_profile}' and its data?")
            if st.button("Delete", type="primary"):
                delete_profile(current_profile)
                remaining = list_profiles()
                _switch_profile(remaining[0])
                _queue_toast("Profile deleted.")
                st.rerun()

        _confirm_delete_profile()

    st.divider()
    st.header("Navigate")
    pages = ["Dashboard", "Subjects", "Sessions", "Scheduler", "Progress", "Settings"]
    page = st.radio("Page", pages, key="nav_page", label_visibility="collapsed")

if page == "Dashboard":
    render_dashboard(state)
elif page == "Subjects":
    render_subjects(state)
elif page == "Sessions":
    render_sessions(state)
elif page == "Scheduler":
    render_scheduler(state)
elif page == "Progress":
    render_progress(state)
elif page == "Settings":
    render_settings(state)
