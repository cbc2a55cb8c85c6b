"""Rewards aggregation: the only place XP is granted for completions.

Each completion event is keyed by its task or session id. Every applied step
is written to the ``reward_grants`` ledger, so a repeated event is absorbed
as a duplicate and an interrupted one resumes where it stopped instead of
granting twice.
"""
import logging
import uuid
from datetime import date, datetime, timedelta

from focusflow.config import Settings, settings
from focusflow.engine import progression as levels
from focusflow.engine import streaks
from focusflow.engine.progression import LevelChange, ProgressionLedger
from focusflow.errors import InvalidStateError, NotFoundError
from focusflow.events import EventBus, LevelUp, StreakMilestone, TaskCompleted, WeeklyGoalMet, event_bus
from focusflow.locks import user_lock
from focusflow.models.session import Session
from focusflow.schemas.rewards import ProgressResponse, RewardSummary
from focusflow.services import tracker_service
from focusflow.store import EngineStore

logger = logging.getLogger(__name__)


def session_award(session_type: str, config: Settings = settings) -> int:
    if session_type == "work":
        return config.XP_COMPLETED_SESSION
    return config.XP_BREAK_SESSION


async def grant_xp(
    store: EngineStore,
    user_id: uuid.UUID,
    amount: int,
    config: Settings = settings,
) -> LevelChange:
    levels.validate_xp_amount(amount)
    progression = await store.load_progression(user_id)
    change = ProgressionLedger(progression, config.XP_PER_LEVEL, config.MAX_LEVEL).grant(amount)
    await store.save_progression(progression)
    return change


async def _apply_reward_event(
    store: EngineStore,
    user_id: uuid.UUID,
    source_type: str,
    source_id: str,
    base_xp: int,
    occurred: date | datetime,
    weekly_kind: str | None,
    config: Settings,
    bus: EventBus,
) -> RewardSummary:
    grants = await store.get_grants(user_id, source_type, source_id)
    if "done" in grants:
        logger.info(
            "Duplicate %s completion %s for user %s absorbed", source_type, source_id, user_id
        )
        return RewardSummary(duplicate=True)

    day = streaks.to_activity_day(occurred, config.ACTIVITY_TIMEZONE)
    counts_activity = weekly_kind is not None

    # Streak and weekly goal are evaluated first but persisted after progression
    streak = await store.load_streak(user_id)
    goal = await store.load_weekly_goal(user_id)
    if goal is None:
        goal = tracker_service.start_week(user_id, day, config)

    milestone_days = None
    goal_just_met = False
    if counts_activity:
        if "streak" in grants:
            milestone_days = (grants["streak"].detail_json or {}).get("milestone")
        else:
            milestone_days = tracker_service.apply_activity(streak, day, config).milestone_days
        if "weekly" in grants:
            goal_just_met = bool((grants["weekly"].detail_json or {}).get("goal_just_met"))
        else:
            goal_just_met = tracker_service.apply_weekly_activity(
                goal, weekly_kind, day, config
            ).goal_just_met

    progression = await store.load_progression(user_id)
    ledger = ProgressionLedger(progression, config.XP_PER_LEVEL, config.MAX_LEVEL)
    level_at_call = progression.level
    if "base" in grants:
        level_before_event = (grants["base"].detail_json or {}).get("previous_level", level_at_call)
    else:
        level_before_event = level_at_call

    summary = RewardSummary()
    pending: list[tuple[str, int, dict | None]] = []

    if "base" not in grants and base_xp > 0:
        ledger.grant(base_xp)
        pending.append(("base", base_xp, {"previous_level": level_before_event}))
        summary.xp_granted += base_xp

    if milestone_days and "streak_milestone" not in grants and config.XP_STREAK_MILESTONE > 0:
        ledger.grant(config.XP_STREAK_MILESTONE)
        pending.append(("streak_milestone", config.XP_STREAK_MILESTONE, {"days": milestone_days}))
        summary.xp_granted += config.XP_STREAK_MILESTONE
        summary.streak_reward_granted = config.XP_STREAK_MILESTONE

    if goal_just_met and "weekly_goal" not in grants and config.XP_WEEKLY_GOAL > 0:
        ledger.grant(config.XP_WEEKLY_GOAL)
        pending.append(("weekly_goal", config.XP_WEEKLY_GOAL, None))
        summary.xp_granted += config.XP_WEEKLY_GOAL
        summary.weekly_reward_granted = config.XP_WEEKLY_GOAL

    if (
        progression.level > level_before_event
        and "level_up" not in grants
        and config.XP_LEVEL_UP_BONUS > 0
    ):
        ledger.grant(config.XP_LEVEL_UP_BONUS)
        pending.append(("level_up", config.XP_LEVEL_UP_BONUS, {"level": progression.level}))
        summary.xp_granted += config.XP_LEVEL_UP_BONUS
        summary.level_up_bonus_granted = config.XP_LEVEL_UP_BONUS

    if pending:
        await store.save_progression(progression)
        for step, xp, detail in pending:
            await store.record_grant(user_id, source_type, source_id, step, xp, detail)

    if counts_activity:
        await store.save_streak(streak)
        if "streak" not in grants:
            await store.record_grant(
                user_id, source_type, source_id, "streak",
                detail={"days": streak.current_streak_days, "milestone": milestone_days},
            )
        await store.save_weekly_goal(goal)
        if "weekly" not in grants:
            await store.record_grant(
                user_id, source_type, source_id, "weekly",
                detail={"goal_just_met": goal_just_met},
            )

    await store.record_grant(user_id, source_type, source_id, "done", xp=summary.xp_granted)

    if progression.level != level_at_call:
        summary.new_level = progression.level
    summary.streak_days = streak.current_streak_days
    if goal.week_start_date == streaks.week_start(day, config.WEEK_START_DAY):
        summary.weekly_progress_percent = tracker_service.weekly_progress(goal)

    logger.info(
        "Granted %d XP to user %s for %s %s (level %d)",
        summary.xp_granted, user_id, source_type, source_id, progression.level,
    )

    if summary.streak_reward_granted:
        bus.publish(StreakMilestone(user_id=user_id, days=milestone_days))
    if summary.weekly_reward_granted:
        bus.publish(WeeklyGoalMet(user_id=user_id))
    if summary.new_level is not None:
        bus.publish(LevelUp(user_id=user_id, new_level=summary.new_level))
    return summary


async def grant_session_rewards(
    store: EngineStore,
    user_id: uuid.UUID,
    session: Session,
    config: Settings = settings,
    bus: EventBus = event_bus,
) -> RewardSummary:
    """Grant rewards for a completed session. Caller holds the user lock."""
    if session.user_id != user_id:
        raise NotFoundError("Session not found")
    if session.status != "completed":
        raise InvalidStateError(f"Cannot reward a session that is {session.status}")
    weekly_kind = "session" if session.session_type == "work" else None
    return await _apply_reward_event(
        store,
        user_id,
        "session",
        str(session.id),
        session_award(session.session_type, config),
        session.end_time,
        weekly_kind,
        config,
        bus,
    )


async def on_session_completed(
    store: EngineStore,
    user_id: uuid.UUID,
    session: Session,
    config: Settings = settings,
    bus: EventBus = event_bus,
    redis_client=None,
) -> RewardSummary:
    async with user_lock(user_id, redis_client):
        return await grant_session_rewards(store, user_id, session, config, bus)


async def on_task_completed(
    store: EngineStore,
    user_id: uuid.UUID,
    task_id: uuid.UUID | str,
    completion_date: date | datetime,
    config: Settings = settings,
    bus: EventBus = event_bus,
    redis_client=None,
) -> RewardSummary:
    async with user_lock(user_id, redis_client):
        summary = await _apply_reward_event(
            store,
            user_id,
            "task",
            str(task_id),
            config.XP_COMPLETED_TASK,
            completion_date,
            "task",
            config,
            bus,
        )
    if not summary.duplicate:
        bus.publish(TaskCompleted(user_id=user_id, task_id=str(task_id), summary=summary))
    return summary


async def get_progress(
    store: EngineStore,
    user_id: uuid.UUID,
    today: date,
    config: Settings = settings,
) -> ProgressResponse:
    progression = await store.load_progression(user_id, create=False)
    streak = await store.load_streak(user_id, create=False)
    goal = await store.load_weekly_goal(user_id)

    current_week = streaks.week_start(today, config.WEEK_START_DAY)
    if goal is None or goal.week_start_date != current_week:
        goal = tracker_service.start_week(user_id, today, config)

    # A streak whose last day is before yesterday is already broken
    current_days = streak.current_streak_days
    if streak.last_activity_date is None or streak.last_activity_date < today - timedelta(days=1):
        current_days = 0

    xp = progression.xp_total
    return ProgressResponse(
        xp_total=xp,
        level=progression.level,
        level_progress_percent=levels.level_progress_percent(xp, config.XP_PER_LEVEL, config.MAX_LEVEL),
        xp_for_next_level=levels.xp_for_next_level(xp, config.XP_PER_LEVEL, config.MAX_LEVEL),
        current_streak_days=current_days,
        longest_streak_days=streak.longest_streak_days,
        next_milestone_days=streaks.next_milestone(current_days, config.STREAK_MILESTONES),
        streak_progress_percent=streaks.streak_progress_percent(current_days, config.STREAK_MILESTONES),
        week_start_date=goal.week_start_date.isoformat(),
        completed_tasks=goal.completed_tasks,
        completed_sessions=goal.completed_sessions,
        target_tasks=goal.target_tasks,
        target_sessions=goal.target_sessions,
        weekly_goal_met=goal.goal_met,
        weekly_progress_percent=tracker_service.weekly_progress(goal),
    )
