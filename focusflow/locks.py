"""Per-user serialization of engine operations.

Operations for one user run one at a time: an in-process ``asyncio.Lock``
covers a single worker, a Redis lock covers several workers sharing a
database. Different users never wait on each other.
"""
import asyncio
import uuid
import weakref
from contextlib import asynccontextmanager

from focusflow.config import settings

_local_locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = weakref.WeakValueDictionary()


def _local_lock(user_id: uuid.UUID) -> asyncio.Lock:
    lock = _local_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _local_locks[user_id] = lock
    return lock


@asynccontextmanager
async def user_lock(user_id: uuid.UUID, redis_client=None, timeout: int | None = None):
    local = _local_lock(user_id)
    async with local:
        if redis_client is None:
            yield
            return
        distributed = redis_client.lock(
            f"lock:user:{user_id}",
            timeout=timeout or settings.USER_LOCK_TIMEOUT_SECONDS,
            blocking_timeout=timeout or settings.USER_LOCK_TIMEOUT_SECONDS,
        )
        async with distributed:
            yield
