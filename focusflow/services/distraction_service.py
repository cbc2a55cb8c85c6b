import logging
import uuid
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from focusflow.clock import Clock, SystemClock
from focusflow.config import Settings, settings
from focusflow.engine import session_machine as machine
from focusflow.errors import NotFoundError, ValidationError
from focusflow.models.distraction import DISTRACTION_TYPES, Distraction
from focusflow.store import DistractionQuery, EngineStore

logger = logging.getLogger(__name__)


async def record_distraction(
    store: EngineStore,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    distraction_type: str,
    note: str | None = None,
    duration_seconds: int = 30,
    clock: Clock = SystemClock(),
) -> Distraction:
    """Append a distraction to a running session. Events are never edited."""
    if distraction_type not in DISTRACTION_TYPES:
        raise ValidationError(
            f"Distraction type must be one of {', '.join(DISTRACTION_TYPES)}, got {distraction_type!r}"
        )
    if not 1 <= duration_seconds <= 3600:
        raise ValidationError("Distraction duration must be between 1 and 3600 seconds")
    if note is not None and len(note) > 200:
        raise ValidationError("Distraction note cannot exceed 200 characters")

    session = await store.get_session(user_id, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    machine.require_status(session, "distract")

    distraction = Distraction(
        session_id=session.id,
        user_id=user_id,
        type=distraction_type,
        occurred_at=clock.now(),
        note=note,
        duration_seconds=duration_seconds,
    )
    await store.append_distraction(distraction)
    logger.info("Logged %s distraction on session %s", distraction_type, session.id)
    return distraction


def distractions_for_session(
    store: EngineStore, user_id: uuid.UUID, session_id: uuid.UUID
) -> DistractionQuery:
    return store.list_distractions(user_id, session_id=session_id)


def _day_bounds(day: date, config: Settings) -> tuple[datetime, datetime]:
    tz = ZoneInfo(config.ACTIVITY_TIMEZONE)
    start = datetime.combine(day, time.min, tzinfo=tz)
    return start, start + timedelta(days=1)


def distractions_between(
    store: EngineStore, user_id: uuid.UUID, start: datetime, end: datetime
) -> DistractionQuery:
    if start >= end:
        raise ValidationError("Range start must be before its end")
    return store.list_distractions(user_id, start=start, end=end)


def distractions_on(
    store: EngineStore, user_id: uuid.UUID, day: date, config: Settings = settings
) -> DistractionQuery:
    start, end = _day_bounds(day, config)
    return store.list_distractions(user_id, start=start, end=end)


async def get_distraction_stats(
    store: EngineStore,
    user_id: uuid.UUID,
    days: int = 30,
    clock: Clock = SystemClock(),
) -> dict:
    end = clock.now()
    start = end - timedelta(days=days)
    by_type = await store.count_distractions(user_id, start, end)
    return {
        "days": days,
        "total": sum(by_type.values()),
        "by_type": dict(sorted(by_type.items(), key=lambda item: item[1], reverse=True)),
    }
