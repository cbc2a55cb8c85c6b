from focusflow.models.base import Base
from focusflow.models.distraction import Distraction
from focusflow.models.progression import Progression, Streak, WeeklyGoal
from focusflow.models.reward_grant import RewardGrant
from focusflow.models.session import Session
from focusflow.models.task import Task
from focusflow.models.user import User

__all__ = [
    "Base",
    "Distraction",
    "Progression",
    "RewardGrant",
    "Session",
    "Streak",
    "Task",
    "User",
    "WeeklyGoal",
]
