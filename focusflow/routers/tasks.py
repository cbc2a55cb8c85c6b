import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.clock import Clock
from focusflow.database import get_db
from focusflow.config import Settings
from focusflow.dependencies import get_clock, get_config, get_current_user, get_redis, get_store
from focusflow.models.user import User
from focusflow.schemas.task import TaskCompleteResponse, TaskCreate, TaskResponse, TaskUpdate
from focusflow.services import task_service
from focusflow.store import EngineStore

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    completed: bool | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.get_tasks(db, user.id, completed=completed)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    data: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.create_task(db, user.id, data.model_dump())


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: uuid.UUID,
    data: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await task_service.update_task(
        db, user.id, task_id, data.model_dump(exclude_unset=True)
    )
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Task not found"
        )
    return task


@router.post("/{task_id}/complete", response_model=TaskCompleteResponse)
async def complete_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    config: Settings = Depends(get_config),
    redis_client=Depends(get_redis),
):
    result = await task_service.complete_task(
        store, user.id, task_id, clock=clock, config=config, redis_client=redis_client
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Task not found"
        )
    task, summary = result
    return TaskCompleteResponse(task=TaskResponse.model_validate(task), summary=summary)
