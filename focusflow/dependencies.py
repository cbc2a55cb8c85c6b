import uuid

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.clock import Clock, SystemClock
from focusflow.config import Settings, settings
from focusflow.database import get_db
from focusflow.models.user import User
from focusflow.store import EngineStore

_system_clock = SystemClock()


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the ``X-User-Id`` header.

    Authentication happens upstream (gateway or auth service); this only
    maps the already-verified identity onto a user row.
    """
    try:
        user_id = uuid.UUID(x_user_id or "")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid user id")
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


async def get_store(db: AsyncSession = Depends(get_db)) -> EngineStore:
    return EngineStore(db)


def get_config() -> Settings:
    return settings


def get_clock() -> Clock:
    return _system_clock


def get_redis(request: Request):
    return getattr(request.app.state, "redis", None)
