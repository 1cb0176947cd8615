"""
Database engine, session factory and declarative base.

One pooled async engine is shared by the whole process. Request handlers get
a scoped session through ``get_db``; the engine is disposed at shutdown.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": max(int(settings.DB_POOL_SIZE), 1),
        "max_overflow": max(int(settings.DB_MAX_OVERFLOW), 0),
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session that is always closed."""
    async with async_session_maker() as session:
        yield session


async def dispose_engine() -> None:
    """Release every pooled connection; called once at process shutdown."""
    await engine.dispose()
