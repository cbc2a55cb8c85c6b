import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.clock import Clock, SystemClock
from focusflow.config import Settings, settings
from focusflow.events import EventBus, event_bus
from focusflow.models.task import Task
from focusflow.schemas.rewards import RewardSummary
from focusflow.services import rewards_service
from focusflow.store import EngineStore


async def get_tasks(
    db: AsyncSession,
    user_id: uuid.UUID,
    completed: bool | None = None,
) -> list[Task]:
    query = select(Task).where(Task.user_id == user_id)
    if completed is not None:
        query = query.where(Task.completed == completed)
    query = query.order_by(Task.completed.asc(), Task.created_at.asc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_task(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Task:
    task = Task(user_id=user_id, completed=False, **data)
    db.add(task)
    await db.flush()
    return task


async def update_task(
    db: AsyncSession, user_id: uuid.UUID, task_id: uuid.UUID, data: dict
) -> Task | None:
    result = await db.execute(
        select(Task).where(Task.id == task_id, Task.user_id == user_id)
    )
    task = result.scalar_one_or_none()
    if task is None:
        return None

    for key, value in data.items():
        if value is not None:
            setattr(task, key, value)
    task.updated_at = datetime.now(timezone.utc)

    await db.flush()
    return task


async def complete_task(
    store: EngineStore,
    user_id: uuid.UUID,
    task_id: uuid.UUID,
    clock: Clock = SystemClock(),
    config: Settings = settings,
    bus: EventBus = event_bus,
    redis_client=None,
) -> tuple[Task, RewardSummary] | None:
    """Mark a task done and hand the completion to the rewards engine.

    Completing an already completed task is a benign duplicate.
    """
    task = await store.get_task(user_id, task_id)
    if task is None:
        return None

    if not task.completed:
        task.completed = True
        task.completed_at = clock.now()
        await store.db.flush()

    summary = await rewards_service.on_task_completed(
        store, user_id, task.id, task.completed_at, config, bus, redis_client
    )
    return task, summary
