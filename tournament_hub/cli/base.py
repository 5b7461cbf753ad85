"""
Shared plumbing for CLI command handlers
"""
import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tournament_hub.config import settings
from tournament_hub.database import engine_options

T = TypeVar("T")


class BaseCommand:
    """Each command runs against its own engine, disposed when the command ends."""

    def __init__(self, dry_run: bool = False, database_url: Optional[str] = None):
        self.dry_run = dry_run
        self.database_url = database_url or settings.DATABASE_URL

    def run(self, operation: Callable[..., Awaitable[T]], *args) -> T:
        return asyncio.run(self._with_engine(operation, *args))

    async def _with_engine(self, operation, *args):
        engine = create_async_engine(self.database_url, **engine_options(self.database_url))
        try:
            return await operation(engine, *args)
        finally:
            await engine.dispose()

    @staticmethod
    def session_factory(engine) -> async_sessionmaker:
        return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
