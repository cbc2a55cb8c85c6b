from pydantic import BaseModel


class RewardSummary(BaseModel):
    """Delta produced by one completion event.

    Consumers update only what changed. A duplicate call yields an empty
    summary with ``duplicate`` set.
    """

    xp_granted: int = 0
    new_level: int | None = None  # set only when the level changed
    streak_reward_granted: int = 0
    weekly_reward_granted: int = 0
    level_up_bonus_granted: int = 0
    streak_days: int = 0
    weekly_progress_percent: float = 0.0
    duplicate: bool = False


class ProgressResponse(BaseModel):
    xp_total: int
    level: int
    level_progress_percent: float
    xp_for_next_level: int
    current_streak_days: int
    longest_streak_days: int
    next_milestone_days: int | None
    streak_progress_percent: float
    week_start_date: str
    completed_tasks: int
    completed_sessions: int
    target_tasks: int
    target_sessions: int
    weekly_goal_met: bool
    weekly_progress_percent: float
