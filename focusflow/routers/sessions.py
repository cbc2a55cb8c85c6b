import uuid
from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from focusflow.clock import Clock
from focusflow.config import Settings
from focusflow.dependencies import get_clock, get_config, get_current_user, get_redis, get_store
from focusflow.engine.session_machine import session_timing
from focusflow.models.user import User
from focusflow.schemas.session import (
    ActiveSessionResponse,
    DistractionCreate,
    DistractionResponse,
    SessionComplete,
    SessionCompleteResponse,
    SessionResponse,
    SessionStart,
    SessionStatsResponse,
    SessionTimingResponse,
    SuggestionResponse,
)
from focusflow.services import distraction_service, session_service
from focusflow.store import EngineStore

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    limit: int = Query(default=30, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
):
    return await session_service.get_sessions(
        store, user.id, limit=limit, offset=offset,
        start_date=start_date, end_date=end_date,
    )


@router.post("", response_model=SessionResponse, status_code=201)
async def start_session(
    data: SessionStart,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    config: Settings = Depends(get_config),
    redis_client=Depends(get_redis),
):
    return await session_service.start_session(
        store, user.id, data.session_type, data.planned_duration_seconds,
        clock=clock, config=config, redis_client=redis_client,
    )


@router.get("/active", response_model=ActiveSessionResponse)
async def get_active_session(
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    session = await session_service.get_active_session(store, user.id)
    if session is None:
        return ActiveSessionResponse(session=None)
    timing = session_timing(session, clock.now())
    return ActiveSessionResponse(
        session=SessionResponse.model_validate(session),
        timing=SessionTimingResponse(**asdict(timing)),
    )


@router.get("/suggestion", response_model=SuggestionResponse)
async def suggest_next_session(
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    config: Settings = Depends(get_config),
):
    suggestion = await session_service.suggest_next_session(store, user.id, config)
    return SuggestionResponse(**asdict(suggestion))


@router.get("/stats", response_model=SessionStatsResponse)
async def get_session_stats(
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return await session_service.get_session_stats(
        store, user.id, start=start_date, end=end_date, clock=clock
    )


@router.post("/{session_id}/pause", response_model=SessionResponse)
async def pause_session(
    session_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    redis_client=Depends(get_redis),
):
    return await session_service.pause_session(
        store, user.id, session_id, clock=clock, redis_client=redis_client
    )


@router.post("/{session_id}/resume", response_model=SessionResponse)
async def resume_session(
    session_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    redis_client=Depends(get_redis),
):
    return await session_service.resume_session(
        store, user.id, session_id, clock=clock, redis_client=redis_client
    )


@router.post("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(
    session_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    redis_client=Depends(get_redis),
):
    return await session_service.cancel_session(
        store, user.id, session_id, clock=clock, redis_client=redis_client
    )


@router.post("/{session_id}/complete", response_model=SessionCompleteResponse)
async def complete_session(
    session_id: uuid.UUID,
    data: SessionComplete | None = None,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    config: Settings = Depends(get_config),
    redis_client=Depends(get_redis),
):
    data = data or SessionComplete()
    result = await session_service.complete_session(
        store, user.id, session_id, rating=data.rating, notes=data.notes,
        clock=clock, config=config, redis_client=redis_client,
    )
    return SessionCompleteResponse(
        session=SessionResponse.model_validate(result.session),
        summary=result.summary,
        actual_duration_seconds=result.actual_duration_seconds,
        early_completion=result.early_completion,
    )


@router.post("/{session_id}/distractions", response_model=DistractionResponse, status_code=201)
async def record_distraction(
    session_id: uuid.UUID,
    data: DistractionCreate,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return await distraction_service.record_distraction(
        store, user.id, session_id, data.type,
        note=data.note, duration_seconds=data.duration_seconds, clock=clock,
    )


@router.get("/{session_id}/distractions", response_model=list[DistractionResponse])
async def list_session_distractions(
    session_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
):
    return await distraction_service.distractions_for_session(store, user.id, session_id).all()
