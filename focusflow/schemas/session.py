import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from focusflow.schemas.rewards import RewardSummary

SessionType = Literal["work", "short_break", "long_break"]
DistractionType = Literal["phone", "social_media", "thoughts", "email", "noise", "people", "other"]


class SessionStart(BaseModel):
    session_type: SessionType = "work"
    planned_duration_seconds: int | None = None


class SessionComplete(BaseModel):
    rating: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = Field(default=None, max_length=500)


class PauseInterval(BaseModel):
    start: datetime
    end: datetime | None


class SessionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    session_type: str
    planned_duration_seconds: int
    start_time: datetime
    end_time: datetime | None
    pause_intervals: list[PauseInterval]
    status: str
    xp_earned: int
    rating: int | None
    notes: str | None
    completed_work_count_in_cycle: int
    actual_duration_seconds: int | None
    early_completion: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SessionTimingResponse(BaseModel):
    elapsed_seconds: int
    paused_seconds: int
    active_seconds: int
    remaining_seconds: int
    overdue: bool


class ActiveSessionResponse(BaseModel):
    session: SessionResponse | None
    timing: SessionTimingResponse | None = None


class SessionCompleteResponse(BaseModel):
    session: SessionResponse
    summary: RewardSummary
    actual_duration_seconds: int
    early_completion: bool


class SuggestionResponse(BaseModel):
    session_type: str
    planned_duration_seconds: int
    completed_work_count_in_cycle: int


class DistractionCreate(BaseModel):
    type: DistractionType
    note: str | None = Field(default=None, max_length=200)
    duration_seconds: int = Field(default=30, ge=1, le=3600)


class DistractionResponse(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    type: str
    occurred_at: datetime
    note: str | None
    duration_seconds: int

    model_config = {"from_attributes": True}


class DistractionStatsResponse(BaseModel):
    days: int
    total: int
    by_type: dict[str, int]


class DailySessionHistory(BaseModel):
    date: date
    total_sessions: int
    completed_sessions: int
    completion_rate: float
    total_xp: int
    focused_seconds: int
    distractions: int


class SessionStatsResponse(BaseModel):
    start: datetime
    end: datetime
    total_sessions: int
    completed_sessions: int
    completion_rate: float
    work_sessions: int
    completed_work_sessions: int
    total_xp: int
    focused_seconds: int
    average_rating: float | None
    total_distractions: int
    daily_history: list[DailySessionHistory]
