"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models carry no
PostgreSQL-only column types, so they are created as-is.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.clock import FixedClock
from src.infrastructure.database import Base
from src.infrastructure.models import RestaurantSettingsModel


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

# Thursday 2026-03-12 12:00 UTC (08:00 in Montréal)
NOW = datetime(2026, 3, 12, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def publisher() -> AsyncMock:
    return AsyncMock()


@pytest_asyncio.fixture
async def client(clock, publisher) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by SQLite, a fixed clock and a mocked publisher."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        session.add(
            RestaurantSettingsModel(
                restaurant_id=1, name="Chez Test", timezone="America/Toronto"
            )
        )
        await session.commit()

    with (
        patch(
            "src.workers.urgency_monitor.start_urgency_monitor",
            new_callable=AsyncMock,
        ),
        patch(
            "src.workers.urgency_monitor.stop_urgency_monitor",
            new_callable=AsyncMock,
        ),
    ):

        async def _test_db():
            async with TestSessionFactory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        from src.api.app import create_app
        from src.api.dependencies import get_clock, get_db, get_publisher

        app = create_app()
        app.dependency_overrides[get_db] = _test_db
        app.dependency_overrides[get_clock] = lambda: clock
        app.dependency_overrides[get_publisher] = lambda: publisher

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()
