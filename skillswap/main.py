import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

import sentry_sdk
from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

env_path = Path(__file__).resolve().parent.parent / ".env"
_ = load_dotenv(dotenv_path=env_path)

from skillswap.api import auth, match_requests, matches, skills, users
from skillswap.config import settings
from skillswap.core.dependencies import get_database_health, require_database
from skillswap.core.errors import register_exception_handlers
from skillswap.core.middleware import setup_middleware
from skillswap.database import DatabaseHealth, engine
from skillswap.utils.datetime_utils import serialize_datetime, utc_now

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 SkillSwap API starting up")

    health: DatabaseHealth = app.state.db_health
    if await health.check():
        logger.info("✅ Connected to database")
    else:
        # Keep serving; gated routes answer 503 until a re-probe succeeds.
        logger.warning(f"⚠️  Database unavailable at startup: {health.last_error}")

    yield

    logger.info("🛑 SkillSwap API shutting down")
    await engine.dispose()


if settings.SENTRY_DSN:
    _ = sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=1.0 if settings.DEBUG else 0.1,
        environment=settings.ENVIRONMENT,
        release=f"skillswap-api@{settings.VERSION}",
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            StarletteIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
    )

    logger.info(f"✅ Sentry initialized for environment: {settings.ENVIRONMENT}")
else:
    logger.info("⚠️  Sentry DSN not configured - error tracking disabled")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    openapi_url="/api/openapi.json" if settings.DOCS_ENABLED else None,
    lifespan=lifespan,
)

app.state.db_health = DatabaseHealth(engine, recheck_seconds=settings.DB_HEALTH_RECHECK_SECONDS)

setup_middleware(app)
register_exception_handlers(app)

database_gate = [Depends(require_database)]

app.include_router(auth.router, prefix="/api/auth", dependencies=database_gate)
app.include_router(users.router, prefix="/api/users", dependencies=database_gate)
app.include_router(skills.router, prefix="/api/skills", dependencies=database_gate)
app.include_router(matches.router, prefix="/api/matches", dependencies=database_gate)
app.include_router(
    match_requests.router,
    prefix="/api/match-requests",
    dependencies=database_gate,
)


@app.get("/")
async def root():
    return {"message": "SkillSwap API is running", "version": settings.VERSION}


@app.get("/health")
async def health_check(
    health: Annotated[DatabaseHealth, Depends(get_database_health)],
):
    _ = await health.check()
    snapshot = health.snapshot()

    body = {
        "status": "healthy" if health.connected else "degraded",
        "message": "SkillSwap API is running",
        "version": settings.VERSION,
        "timestamp": serialize_datetime(utc_now()),
        "database": snapshot["status"],
        "last_checked": snapshot["last_checked"],
        "last_error": snapshot["last_error"],
    }
    return JSONResponse(content=body)
