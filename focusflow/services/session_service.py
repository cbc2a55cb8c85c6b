import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from focusflow.clock import Clock, SystemClock
from focusflow.config import Settings, settings
from focusflow.engine import session_machine as machine
from focusflow.errors import ConflictError, NotFoundError, ValidationError
from focusflow.events import (
    EventBus,
    SessionCancelled,
    SessionCompleted,
    SessionPaused,
    SessionResumed,
    SessionStarted,
    event_bus,
)
from focusflow.locks import user_lock
from focusflow.models.session import Session
from focusflow.schemas.rewards import RewardSummary
from focusflow.services import rewards_service
from focusflow.store import EngineStore

logger = logging.getLogger(__name__)

system_clock = SystemClock()


@dataclass
class CompletionResult:
    session: Session
    summary: RewardSummary
    actual_duration_seconds: int
    early_completion: bool


@dataclass(frozen=True)
class Suggestion:
    session_type: str
    planned_duration_seconds: int
    completed_work_count_in_cycle: int


async def _get_owned_session(store: EngineStore, user_id: uuid.UUID, session_id: uuid.UUID) -> Session:
    session = await store.get_session(user_id, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return session


async def start_session(
    store: EngineStore,
    user_id: uuid.UUID,
    session_type: str = "work",
    planned_duration_seconds: int | None = None,
    clock: Clock = system_clock,
    config: Settings = settings,
    bus: EventBus = event_bus,
    redis_client=None,
) -> Session:
    machine.validate_session_type(session_type)
    if planned_duration_seconds is None:
        planned_duration_seconds = config.duration_for(session_type)
    machine.validate_planned_duration(planned_duration_seconds, config.MAX_SESSION_SECONDS)

    async with user_lock(user_id, redis_client):
        await store.ensure_user(user_id)
        active = await store.load_session(user_id)
        if active is not None:
            logger.warning("User %s tried to start a session while %s is %s", user_id, active.id, active.status)
            raise ConflictError("You already have an active session. Complete or cancel it first.")

        session = Session(
            id=uuid.uuid4(),
            user_id=user_id,
            session_type=session_type,
            planned_duration_seconds=planned_duration_seconds,
            start_time=clock.now(),
            pause_intervals=[],
            status="running",
            xp_earned=0,
            completed_work_count_in_cycle=0,
            early_completion=False,
        )
        await store.save_session(session)

    logger.info("User %s started %s session %s (%ds)", user_id, session_type, session.id, planned_duration_seconds)
    bus.publish(
        SessionStarted(
            user_id=user_id,
            session_id=session.id,
            session_type=session_type,
            planned_duration_seconds=planned_duration_seconds,
        )
    )
    return session


async def pause_session(
    store: EngineStore,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    clock: Clock = system_clock,
    bus: EventBus = event_bus,
    redis_client=None,
) -> Session:
    async with user_lock(user_id, redis_client):
        session = await _get_owned_session(store, user_id, session_id)
        machine.require_status(session, "pause")
        session.pause_intervals = machine.open_pause(session.pause_intervals or [], clock.now())
        session.status = "paused"
        await store.save_session(session)

    bus.publish(SessionPaused(user_id=user_id, session_id=session.id))
    return session


async def resume_session(
    store: EngineStore,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    clock: Clock = system_clock,
    bus: EventBus = event_bus,
    redis_client=None,
) -> Session:
    async with user_lock(user_id, redis_client):
        session = await _get_owned_session(store, user_id, session_id)
        machine.require_status(session, "resume")
        session.pause_intervals = machine.close_pause(session.pause_intervals or [], clock.now())
        session.status = "running"
        await store.save_session(session)

    bus.publish(SessionResumed(user_id=user_id, session_id=session.id))
    return session


async def cancel_session(
    store: EngineStore,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    clock: Clock = system_clock,
    bus: EventBus = event_bus,
    redis_client=None,
) -> Session:
    """Cancel a running or paused session. No XP is granted."""
    async with user_lock(user_id, redis_client):
        session = await _get_owned_session(store, user_id, session_id)
        machine.require_status(session, "cancel")
        now = clock.now()
        session.pause_intervals = machine.close_pause(session.pause_intervals or [], now)
        session.end_time = now
        session.status = "cancelled"
        await store.save_session(session)

    logger.info("User %s cancelled session %s", user_id, session.id)
    bus.publish(SessionCancelled(user_id=user_id, session_id=session.id))
    return session


async def complete_session(
    store: EngineStore,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    rating: int | None = None,
    notes: str | None = None,
    clock: Clock = system_clock,
    config: Settings = settings,
    bus: EventBus = event_bus,
    redis_client=None,
) -> CompletionResult:
    """Complete a session and grant its rewards exactly once.

    Ending before the planned duration is allowed and flagged with
    ``early_completion`` for the caller's own policy.
    """
    machine.validate_rating(rating)
    if notes is not None and len(notes) > 500:
        raise ValidationError("Session notes cannot exceed 500 characters")

    async with user_lock(user_id, redis_client):
        session = await _get_owned_session(store, user_id, session_id)
        machine.require_status(session, "complete")
        last_completed = await store.last_completed_session(user_id)

        now = clock.now()
        session.pause_intervals = machine.close_pause(session.pause_intervals or [], now)
        session.end_time = now
        timing = machine.session_timing(session, now)
        session.actual_duration_seconds = timing.active_seconds
        session.early_completion = timing.active_seconds < session.planned_duration_seconds
        session.completed_work_count_in_cycle = machine.next_cycle_count(
            last_completed, session.session_type
        )
        session.xp_earned = rewards_service.session_award(session.session_type, config)
        if rating is not None:
            session.rating = rating
        if notes:
            session.notes = notes
        session.status = "completed"
        await store.save_session(session)

        summary = await rewards_service.grant_session_rewards(store, user_id, session, config, bus)

    logger.info(
        "User %s completed session %s: %ds active, early=%s",
        user_id, session.id, timing.active_seconds, session.early_completion,
    )
    bus.publish(SessionCompleted(user_id=user_id, session_id=session.id, summary=summary))
    return CompletionResult(
        session=session,
        summary=summary,
        actual_duration_seconds=timing.active_seconds,
        early_completion=session.early_completion,
    )


async def get_active_session(store: EngineStore, user_id: uuid.UUID) -> Session | None:
    return await store.load_session(user_id)


async def get_sessions(
    store: EngineStore,
    user_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[Session]:
    return await store.list_sessions(
        user_id, limit=limit, offset=offset, start_date=start_date, end_date=end_date
    )


async def suggest_next_session(
    store: EngineStore,
    user_id: uuid.UUID,
    config: Settings = settings,
) -> Suggestion:
    last_completed = await store.last_completed_session(user_id)
    session_type = machine.suggest_next_type(last_completed, config.SESSIONS_PER_LONG_BREAK)
    count = machine.next_cycle_count(last_completed, "short_break")
    return Suggestion(
        session_type=session_type,
        planned_duration_seconds=config.duration_for(session_type),
        completed_work_count_in_cycle=count,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _as_date(value) -> date:
    # SQLite returns date() as a string, Postgres as a date
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


async def get_session_stats(
    store: EngineStore,
    user_id: uuid.UUID,
    start: datetime | None = None,
    end: datetime | None = None,
    clock: Clock = system_clock,
) -> dict:
    """Session analytics over sessions started in ``[start, end]``.

    Defaults to the last 30 days. Completion rate counts every started
    session, including ones still running or cancelled.
    """
    end = _as_utc(end) if end else clock.now()
    start = _as_utc(start) if start else end - timedelta(days=30)
    if start > end:
        raise ValidationError("Start date must be before end date")

    totals = await store.session_totals(user_id, start, end)
    days = await store.daily_session_history(user_id, start, end)
    distractions_by_day = {
        _as_date(day): count
        for day, count in (await store.daily_distraction_counts(user_id, start, end)).items()
    }

    def rate(completed: int, total: int) -> float:
        return completed / total * 100 if total else 0.0

    average_rating = totals.average_rating
    return {
        "start": start,
        "end": end,
        "total_sessions": totals.total_sessions,
        "completed_sessions": totals.completed_sessions,
        "completion_rate": rate(totals.completed_sessions, totals.total_sessions),
        "work_sessions": totals.work_sessions,
        "completed_work_sessions": totals.completed_work_sessions,
        "total_xp": totals.total_xp,
        "focused_seconds": totals.focused_seconds,
        "average_rating": float(average_rating) if average_rating is not None else None,
        "total_distractions": sum(distractions_by_day.values()),
        "daily_history": [
            {
                "date": _as_date(day.day),
                "total_sessions": day.total_sessions,
                "completed_sessions": day.completed_sessions,
                "completion_rate": rate(day.completed_sessions, day.total_sessions),
                "total_xp": day.total_xp,
                "focused_seconds": day.focused_seconds,
                "distractions": distractions_by_day.get(_as_date(day.day), 0),
            }
            for day in days
        ],
    }
