from fastapi import APIRouter, Depends

from focusflow.clock import Clock
from focusflow.config import Settings
from focusflow.dependencies import get_clock, get_config, get_current_user, get_store
from focusflow.engine.streaks import to_activity_day
from focusflow.models.user import User
from focusflow.schemas.rewards import ProgressResponse
from focusflow.services import rewards_service
from focusflow.store import EngineStore

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    user: User = Depends(get_current_user),
    store: EngineStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    config: Settings = Depends(get_config),
):
    today = to_activity_day(clock.now(), config.ACTIVITY_TIMEZONE)
    return await rewards_service.get_progress(store, user.id, today, config)
