"""FastAPI dependency injection helpers."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.clock import Clock, SystemClock
from src.infrastructure.database import async_session_factory
from src.infrastructure.redis_client import get_publisher  # noqa: F401  (re-exported)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock
