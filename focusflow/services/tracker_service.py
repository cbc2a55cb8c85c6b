import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime

from focusflow.config import Settings, settings
from focusflow.engine import streaks
from focusflow.errors import ValidationError
from focusflow.models.progression import Streak, WeeklyGoal
from focusflow.store import EngineStore

logger = logging.getLogger(__name__)

WEEKLY_KINDS = ("task", "session")


@dataclass(frozen=True)
class StreakResult:
    current_streak_days: int
    milestone_reached: bool
    milestone_days: int | None = None


@dataclass(frozen=True)
class WeeklyResult:
    completed_tasks: int
    completed_sessions: int
    goal_just_met: bool
    progress_percent: float


def apply_activity(streak: Streak, day: date, config: Settings = settings) -> StreakResult:
    """Apply an activity day to a loaded streak record in place."""
    update = streaks.advance_streak(
        streak.current_streak_days,
        streak.last_activity_date,
        day,
        config.STREAK_MILESTONES,
        streak.last_milestone_days or 0,
    )
    if update.changed:
        streak.current_streak_days = update.current_days
        streak.last_activity_date = day
        streak.longest_streak_days = max(streak.longest_streak_days or 0, update.current_days)
        streak.next_milestone_days = streaks.next_milestone(
            update.current_days, config.STREAK_MILESTONES
        )
    if update.milestone_reached is not None:
        streak.last_milestone_days = update.milestone_reached
        logger.info(
            "User %s reached a %d-day streak milestone", streak.user_id, update.milestone_reached
        )
    return StreakResult(
        current_streak_days=streak.current_streak_days,
        milestone_reached=update.milestone_reached is not None,
        milestone_days=update.milestone_reached,
    )


def start_week(user_id: uuid.UUID, day: date, config: Settings = settings) -> WeeklyGoal:
    return WeeklyGoal(
        user_id=user_id,
        week_start_date=streaks.week_start(day, config.WEEK_START_DAY),
        completed_tasks=0,
        completed_sessions=0,
        target_tasks=config.WEEKLY_TARGET_TASKS,
        target_sessions=config.WEEKLY_TARGET_SESSIONS,
        goal_met=False,
    )


def roll_week(goal: WeeklyGoal, day: date, config: Settings = settings) -> WeeklyGoal:
    """Reset counters and targets in place when ``day`` falls in a later week."""
    current_start = streaks.week_start(day, config.WEEK_START_DAY)
    if current_start > goal.week_start_date:
        goal.week_start_date = current_start
        goal.completed_tasks = 0
        goal.completed_sessions = 0
        goal.target_tasks = config.WEEKLY_TARGET_TASKS
        goal.target_sessions = config.WEEKLY_TARGET_SESSIONS
        goal.goal_met = False
    return goal


def weekly_progress(goal: WeeklyGoal) -> float:
    return streaks.weekly_progress_percent(
        goal.completed_tasks, goal.completed_sessions, goal.target_tasks, goal.target_sessions
    )


def apply_weekly_activity(goal: WeeklyGoal, kind: str, day: date, config: Settings = settings) -> WeeklyResult:
    if kind not in WEEKLY_KINDS:
        raise ValidationError(f"Weekly activity kind must be task or session, got {kind!r}")
    roll_week(goal, day, config)
    if streaks.week_start(day, config.WEEK_START_DAY) < goal.week_start_date:
        # Late event from an already closed week
        return WeeklyResult(
            completed_tasks=goal.completed_tasks,
            completed_sessions=goal.completed_sessions,
            goal_just_met=False,
            progress_percent=weekly_progress(goal),
        )
    if kind == "task":
        goal.completed_tasks += 1
    else:
        goal.completed_sessions += 1

    just_met = False
    if (
        not goal.goal_met
        and goal.completed_tasks >= goal.target_tasks
        and goal.completed_sessions >= goal.target_sessions
    ):
        goal.goal_met = True
        just_met = True
        logger.info("User %s met the weekly goal for week of %s", goal.user_id, goal.week_start_date)

    return WeeklyResult(
        completed_tasks=goal.completed_tasks,
        completed_sessions=goal.completed_sessions,
        goal_just_met=just_met,
        progress_percent=weekly_progress(goal),
    )


async def record_activity(
    store: EngineStore,
    user_id: uuid.UUID,
    activity_date: date | datetime,
    config: Settings = settings,
) -> StreakResult:
    day = streaks.to_activity_day(activity_date, config.ACTIVITY_TIMEZONE)
    streak = await store.load_streak(user_id)
    result = apply_activity(streak, day, config)
    await store.save_streak(streak)
    return result


async def record_weekly_activity(
    store: EngineStore,
    user_id: uuid.UUID,
    kind: str,
    on: date | datetime,
    config: Settings = settings,
) -> WeeklyResult:
    if kind not in WEEKLY_KINDS:
        raise ValidationError(f"Weekly activity kind must be task or session, got {kind!r}")
    day = streaks.to_activity_day(on, config.ACTIVITY_TIMEZONE)
    goal = await store.load_weekly_goal(user_id)
    if goal is None:
        await store.ensure_user(user_id)
        goal = start_week(user_id, day, config)
    result = apply_weekly_activity(goal, kind, day, config)
    await store.save_weekly_goal(goal)
    return result
