from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def to_activity_day(value: date | datetime, tz_name: str = "UTC") -> date:
    """Normalize a timestamp to the calendar day it falls on in ``tz_name``."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz_name))
        return value.date()
    return value


def next_milestone(current_days: int, milestones: list[int]) -> int | None:
    for milestone in sorted(milestones):
        if current_days < milestone:
            return milestone
    return None


@dataclass(frozen=True)
class StreakUpdate:
    current_days: int
    changed: bool
    milestone_reached: int | None = None


def advance_streak(
    current_days: int,
    last_activity: date | None,
    day: date,
    milestones: list[int],
    last_milestone: int = 0,
) -> StreakUpdate:
    """Apply one activity day to a streak.

    Consecutive day extends by one, a gap of more than a day restarts at one,
    the same day (or an earlier, out-of-order day) leaves it untouched.
    A milestone fires only when the streak moves onto it, and only once:
    values at or below ``last_milestone`` have already been paid.
    """
    if last_activity is None or current_days == 0:
        new_days = 1
    elif day <= last_activity:
        return StreakUpdate(current_days, changed=False)
    elif day - last_activity == timedelta(days=1):
        new_days = current_days + 1
    else:
        new_days = 1

    milestone = new_days if new_days in milestones and new_days > last_milestone else None
    return StreakUpdate(new_days, changed=True, milestone_reached=milestone)


def streak_progress_percent(current_days: int, milestones: list[int]) -> float:
    target = next_milestone(current_days, milestones)
    if target is None:
        return 100.0
    return min(100.0, current_days / target * 100)


def week_start(day: date, week_start_day: int) -> date:
    """First day of the week containing ``day``; 0=Monday .. 6=Sunday."""
    return day - timedelta(days=(day.weekday() - week_start_day) % 7)


def weekly_progress_percent(
    completed_tasks: int, completed_sessions: int, target_tasks: int, target_sessions: int
) -> float:
    task_progress = min(100.0, completed_tasks / target_tasks * 100) if target_tasks else 100.0
    session_progress = (
        min(100.0, completed_sessions / target_sessions * 100) if target_sessions else 100.0
    )
    return (task_progress + session_progress) / 2
