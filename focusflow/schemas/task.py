import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from focusflow.schemas.rewards import RewardSummary

Priority = Literal["low", "medium", "high"]


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    priority: Priority = "medium"


class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    priority: Priority | None = None


class TaskResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    priority: str
    completed: bool
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskCompleteResponse(BaseModel):
    task: TaskResponse
    summary: RewardSummary
