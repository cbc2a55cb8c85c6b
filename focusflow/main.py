import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from focusflow.config import settings
from focusflow.database import engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        profiles_sample_rate=0.1,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis for per-user locks
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    await app.state.redis.ping()

    yield

    # Shutdown
    await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="FocusFlow API",
    version="0.1.0",
    lifespan=lifespan,
)

from focusflow.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from focusflow.routers.distractions import router as distractions_router  # noqa: E402
from focusflow.routers.rewards import router as rewards_router  # noqa: E402
from focusflow.routers.sessions import router as sessions_router  # noqa: E402
from focusflow.routers.tasks import router as tasks_router  # noqa: E402

app.include_router(sessions_router)
app.include_router(tasks_router)
app.include_router(rewards_router)
app.include_router(distractions_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
