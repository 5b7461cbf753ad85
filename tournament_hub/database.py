"""
tournament_hub/database.py
Async engine and session factory for the application database
"""
import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tournament_hub.config import settings
# Importing the orm package registers every table on Base.metadata
from tournament_hub.orm import Base

logger = logging.getLogger(__name__)


def engine_options(url: str) -> Dict[str, Any]:
    """Pool settings per backend; sqlite uses a busy timeout instead of a sized pool."""
    options: Dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if url.lower().startswith("sqlite"):
        options["connect_args"] = {"timeout": 30.0}
    else:
        options.update(pool_size=20, max_overflow=30, pool_timeout=30, pool_recycle=3600)
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; closed when the request finishes."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"✓ {len(Base.metadata.tables)} tables ready on {engine.url.get_backend_name()}")


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database engine disposed")
