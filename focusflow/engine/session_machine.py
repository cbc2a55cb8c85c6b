"""Lifecycle rules and on-demand timing for a single timed session.

idle -> running -> (paused <-> running) -> completed | cancelled

No timers: elapsed, paused and remaining time are always derived from
``start_time``, ``pause_intervals`` and the caller-supplied ``now``.
"""
from dataclasses import dataclass
from datetime import datetime, timezone

from focusflow.errors import InvalidStateError, ValidationError
from focusflow.models.session import SESSION_TYPES

ALLOWED_FROM = {
    "pause": ("running",),
    "resume": ("paused",),
    "cancel": ("running", "paused"),
    "complete": ("running", "paused"),
    "distract": ("running",),
}


def validate_session_type(session_type: str) -> str:
    if session_type not in SESSION_TYPES:
        raise ValidationError(
            f"Session type must be one of {', '.join(SESSION_TYPES)}, got {session_type!r}"
        )
    return session_type


def validate_planned_duration(seconds, max_seconds: int) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise ValidationError("Planned duration must be an integer number of seconds")
    if seconds <= 0:
        raise ValidationError("Planned duration must be positive")
    if seconds > max_seconds:
        raise ValidationError(f"Planned duration cannot exceed {max_seconds} seconds")
    return seconds


def validate_rating(rating: int | None) -> int | None:
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def require_status(session, action: str) -> None:
    allowed = ALLOWED_FROM[action]
    if session.status not in allowed:
        raise InvalidStateError(
            f"Cannot {action} a session that is {session.status} (allowed from: {', '.join(allowed)})"
        )


def _parse(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def open_pause(intervals: list[dict], at: datetime) -> list[dict]:
    return [*intervals, {"start": at.isoformat(), "end": None}]


def close_pause(intervals: list[dict], at: datetime) -> list[dict]:
    """Return a copy with the open interval, if any, closed at ``at``."""
    closed = [dict(interval) for interval in intervals]
    if closed and closed[-1]["end"] is None:
        closed[-1]["end"] = at.isoformat()
    return closed


def paused_seconds(intervals: list[dict], now: datetime) -> float:
    total = 0.0
    for interval in intervals:
        start = _parse(interval["start"])
        end = _parse(interval["end"]) or now
        total += max(0.0, (end - start).total_seconds())
    return total


@dataclass(frozen=True)
class SessionTiming:
    elapsed_seconds: int
    paused_seconds: int
    active_seconds: int
    remaining_seconds: int
    overdue: bool


def session_timing(session, now: datetime) -> SessionTiming:
    """Timing snapshot; sessions far past their planned duration are fine."""
    end = session.end_time or now
    elapsed = max(0.0, (end - session.start_time).total_seconds())
    paused = min(elapsed, paused_seconds(session.pause_intervals or [], end))
    active = int(elapsed - paused)
    remaining = session.planned_duration_seconds - active
    return SessionTiming(
        elapsed_seconds=int(elapsed),
        paused_seconds=int(paused),
        active_seconds=active,
        remaining_seconds=max(0, remaining),
        overdue=remaining < 0,
    )


def next_cycle_count(last_completed, session_type: str) -> int:
    """Completed work sessions in the current cycle once this session completes.

    A completed long break closes the cycle; short breaks keep it going.
    """
    if last_completed is None or last_completed.session_type == "long_break":
        previous = 0
    else:
        previous = last_completed.completed_work_count_in_cycle
    if session_type == "work":
        return previous + 1
    if session_type == "long_break":
        return 0
    return previous


def suggest_next_type(last_completed, sessions_per_long_break: int) -> str:
    """Advisory only; any session type may still be started."""
    if last_completed is None or last_completed.session_type != "work":
        return "work"
    if last_completed.completed_work_count_in_cycle >= sessions_per_long_break:
        return "long_break"
    return "short_break"
