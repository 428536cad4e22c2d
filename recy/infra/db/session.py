"""
Database engine and request-scoped sessions.

Sessions handed out here are never committed on teardown. Services commit
their own unit of work, and anything left pending is discarded when the
session closes.
"""
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from recy.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI routes."""
    async with async_session_factory() as session:
        yield session


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create the users, forms and documents tables if missing."""
    from recy.infra.db.models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
