"""Async database session management helpers."""

from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from orderform.core.config import settings
from orderform.models.base import Base


def _engine_options(url: str) -> dict[str, Any]:
    # SQLite (local runs and tests) rejects pool sizing and READ COMMITTED.
    if url.startswith("sqlite"):
        return {"echo": settings.DEBUG}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "isolation_level": settings.DB_ISOLATION_LEVEL,
        "echo": settings.DEBUG,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session."""

    async with SessionLocal() as session:
        yield session


async def create_all(bind: AsyncEngine | None = None) -> None:
    """Create missing tables; used by scripts and opt-in startup."""

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
