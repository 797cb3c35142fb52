from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4
from pydantic import BaseModel, Field, field_validator


def _new_id() -> str:
    return str(uuid4())


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}[self]


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def value_points(self) -> int:
        return {Difficulty.EASY: 1, Difficulty.MEDIUM: 2, Difficulty.HARD: 3}[self]


class SessionType(str, Enum):
    STUDY = "study"
    REVIEW = "review"
    PRACTICE = "practice"
    EXAM = "exam"

    @property
    def label(self) -> str:
        return {
            SessionType.STUDY: "Study",
            SessionType.REVIEW: "Review",
            SessionType.PRACTICE: "Practice",
            SessionType.EXAM: "Exam Prep",
        }[self]


class SessionStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.SKIPPED)


class Subject(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = Field(min_length=1)
    color: str = Field(default="#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")
    priority: Priority = Priority.MEDIUM
    total_study_time: int = Field(default=0, ge=0)  # minutes
    sessions_completed: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Subject name cannot be empty.")
        return value


class StudySession(BaseModel):
    id: str = Field(default_factory=_new_id)
    subject_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    duration: int = Field(default=25, gt=0)  # minutes
    type: SessionType = SessionType.STUDY
    difficulty: Difficulty = Difficulty.MEDIUM
    status: SessionStatus = SessionStatus.PLANNED
    deadline: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    actual_duration: Optional[int] = Field(default=None, ge=0)
    effectiveness: Optional[int] = Field(default=None, ge=1, le=5)
    notes: str = ""

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Session title cannot be empty.")
        return value


class SchedulingPreferences(BaseModel):
    daily_time_budget: int = Field(default=120, gt=0)  # minutes per day
    session_length: int = Field(default=25, gt=0)
    break_length: int = Field(default=5, ge=0)
    long_break_length: int = Field(default=15, ge=0)  # after 4 sessions
    study_days_per_week: int = Field(default=5, ge=1, le=7)
    preferred_start_times: List[str] = Field(
        default_factory=lambda: ["09:00", "14:00", "19:00"],
        min_length=1,
    )
    max_sessions_per_day: int = Field(default=8, ge=1)

    @field_validator("preferred_start_times")
    @classmethod
    def _check_clock_times(cls, values: List[str]) -> List[str]:
        for value in values:
            parts = value.split(":")
            if len(parts) != 2 or not all(p.isdigit() for p in parts):
                raise ValueError(f"Start time {value!r} is not HH:MM.")
            hours, minutes = int(parts[0]), int(parts[1])
            if not (0 <= hours <= 23 and 0 <= minutes <= 59):
                raise ValueError(f"Start time {value!r} is out of range.")
        return values


class ProgressEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    subject_id: str
    session_id: Optional[str] = None
    day: date
    study_time: int = Field(default=0, ge=0)  # minutes
    sessions_completed: int = Field(default=0, ge=0)
    effectiveness: Optional[int] = Field(default=None, ge=1, le=5)
    mood: Optional[int] = Field(default=None, ge=1, le=5)
    notes: str = ""


class ScoredSession(StudySession):
    priority: float = 0.0
    subject: Optional[Subject] = None


class ScheduledSession(ScoredSession):
    scheduled_at: datetime


class DailySchedule(BaseModel):
    day: date
    sessions: List[ScheduledSession] = Field(default_factory=list)
    total_time: int = 0
    session_count: int = 0
    efficiency: float = 0.0


class AppState(BaseModel):
    subjects: List[Subject] = Field(default_factory=list)
    sessions: List[StudySession] = Field(default_factory=list)
    progress: List[ProgressEntry] = Field(default_factory=list)
    preferences: SchedulingPreferences = Field(default_factory=SchedulingPreferences)
    schedules: List[DailySchedule] = Field(default_factory=list)
    last_generated_on: Optional[date] = None
    profile: str = "default"
