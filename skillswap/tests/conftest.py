import os
import uuid
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only-min-32-chars")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SENTRY_DSN", "")
os.environ["RATE_LIMIT_ENABLED"] = "false"

from skillswap.core.dependencies import get_database_health
from skillswap.core.logging import rate_limiter
from skillswap.database import DatabaseHealth, get_db, json_serializer
from skillswap.main import app
from skillswap.models.base import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        json_serializer=json_serializer,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

    if os.path.exists("./test.db"):
        os.remove("./test.db")


@pytest_asyncio.fixture
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session_maker = async_sessionmaker(
        bind=async_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def db_health(async_engine) -> DatabaseHealth:
    health = DatabaseHealth(async_engine, recheck_seconds=15)
    _ = await health.check()
    return health


@pytest_asyncio.fixture
async def async_client(
    async_session: AsyncSession, db_health: DatabaseHealth
) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        yield async_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_database_health] = lambda: db_health
    rate_limiter.clear_all_limits()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", timeout=30.0
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    rate_limiter.clear_all_limits()


def _get_unique_user_data(base_name: str = "testuser", **overrides):
    unique_id = str(uuid.uuid4())[:8]
    data = {
        "name": f"{base_name.title()} {unique_id}",
        "email": f"{base_name}_{unique_id}@example.com",
        "password": "secret123",
        "linkedin_profile": f"https://www.linkedin.com/in/{base_name}-{unique_id}",
        "location": "Berlin",
        "skills_offered": [],
        "skills_wanted": [],
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture
async def test_user_data():
    return _get_unique_user_data("testuser")


@pytest_asyncio.fixture
async def second_user_data():
    return _get_unique_user_data("seconduser")


@pytest_asyncio.fixture
async def third_user_data():
    return _get_unique_user_data("thirduser")


@pytest_asyncio.fixture
async def test_listing_data():
    unique_id = str(uuid.uuid4())[:8]
    return {
        "title": f"Guitar lessons {unique_id}",
        "description": "Acoustic guitar basics: chords, strumming and your first songs.",
        "category": "Music",
        "level": "Beginner",
        "time_commitment": "2 hours per week",
        "availability": "Weekday evenings",
        "location": "Berlin",
        "skills_wanted": ["Python"],
    }
