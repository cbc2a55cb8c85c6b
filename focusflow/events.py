"""Typed outbound events and an in-process pub/sub bus.

Presentation and notification collaborators subscribe to the bus; the engine
only publishes. A failing subscriber is logged and never breaks the engine.
"""
import contextlib
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from focusflow.schemas.rewards import RewardSummary

logger = logging.getLogger(__name__)


class _Event(BaseModel):
    user_id: uuid.UUID
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionStarted(_Event):
    type: Literal["session.started"] = "session.started"
    session_id: uuid.UUID
    session_type: str
    planned_duration_seconds: int


class SessionPaused(_Event):
    type: Literal["session.paused"] = "session.paused"
    session_id: uuid.UUID


class SessionResumed(_Event):
    type: Literal["session.resumed"] = "session.resumed"
    session_id: uuid.UUID


class SessionCompleted(_Event):
    type: Literal["session.completed"] = "session.completed"
    session_id: uuid.UUID
    summary: RewardSummary


class SessionCancelled(_Event):
    type: Literal["session.cancelled"] = "session.cancelled"
    session_id: uuid.UUID


class TaskCompleted(_Event):
    type: Literal["task.completed"] = "task.completed"
    task_id: str
    summary: RewardSummary


class LevelUp(_Event):
    type: Literal["progression.level_up"] = "progression.level_up"
    new_level: int


class StreakMilestone(_Event):
    type: Literal["streak.milestone"] = "streak.milestone"
    days: int


class WeeklyGoalMet(_Event):
    type: Literal["weekly_goal.met"] = "weekly_goal.met"


EngineEvent = Annotated[
    Union[
        SessionStarted,
        SessionPaused,
        SessionResumed,
        SessionCompleted,
        SessionCancelled,
        TaskCompleted,
        LevelUp,
        StreakMilestone,
        WeeklyGoalMet,
    ],
    Field(discriminator="type"),
]

EventHandler = Callable[[EngineEvent], object]


class EventBus:
    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: EngineEvent) -> EngineEvent:
        logger.debug("Publishing %s for user %s", event.type, event.user_id)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, event.type)
        return event


event_bus = EventBus()
