import json
import logging
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from skillswap.config import settings
from skillswap.utils.datetime_utils import serialize_datetime, utc_now

logger = logging.getLogger(__name__)


def json_serializer(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    json_serializer=json_serializer,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    connect_args={"timeout": settings.DB_CONNECT_TIMEOUT_SECONDS},
)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


class DatabaseHealth:
    """Tracks whether the backing store is reachable.

    The flag starts out disconnected and flips on the first successful probe.
    Failures observed by request handlers mark it down, and gated routes
    re-probe at most once per ``recheck_seconds`` while it is down.
    """

    def __init__(self, engine: AsyncEngine, recheck_seconds: int = 15):
        self.engine = engine
        self.recheck_seconds = recheck_seconds
        self.connected = False
        self.last_checked: datetime | None = None
        self.last_error: str | None = None

    def mark_connected(self) -> None:
        if not self.connected:
            logger.info("✅ Database connection established")
        self.connected = True
        self.last_error = None
        self.last_checked = utc_now()

    def mark_disconnected(self, reason: str) -> None:
        if self.connected:
            logger.warning(f"⚠️  Database marked unavailable: {reason}")
        self.connected = False
        self.last_error = reason
        self.last_checked = utc_now()

    def should_recheck(self) -> bool:
        if self.last_checked is None:
            return True
        return utc_now() - self.last_checked >= timedelta(seconds=self.recheck_seconds)

    async def check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                _ = await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            self.mark_disconnected(str(e).splitlines()[0][:200] if str(e) else type(e).__name__)
            return False

        self.mark_connected()
        return True

    def snapshot(self) -> dict[str, object]:
        return {
            "status": "connected" if self.connected else "disconnected",
            "last_checked": serialize_datetime(self.last_checked),
            "last_error": self.last_error,
        }
