from datetime import datetime

from fastapi import APIRouter, Depends, Query

from focusflow.clock import Clock
from focusflow.dependencies import get_clock, get_current_user, get_store
from focusflow.models.user import User
from focusflow.schemas.session import DistractionResponse, DistractionStatsResponse
from focusflow.services import distraction_service
from focusflow.store import EngineStore

router = APIRouter(prefix="/distractions", tags=["distractions"])


@router.get("", response_model=list[DistractionResponse])
async def list_distractions(
    start_date: datetime = Query(),
    end_date: datetime = Query(),
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
):
    return await distraction_service.distractions_between(
        store, user.id, start_date, end_date
    ).all()


@router.get("/stats", response_model=DistractionStatsResponse)
async def get_distraction_stats(
    days: int = Query(default=30, ge=1, le=365),
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return await distraction_service.get_distraction_stats(store, user.id, days=days, clock=clock)
