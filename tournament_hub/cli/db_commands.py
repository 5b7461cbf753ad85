"""
Database CLI Commands
"""
import logging

from tournament_hub.cli.base import BaseCommand
from tournament_hub.orm import Base

logger = logging.getLogger(__name__)


class DbCommand(BaseCommand):
    """Database CLI command handler."""

    def execute(self, args) -> int:
        if args.db_action == "init":
            return self._init(args)
        print("Error: Unknown database action")
        return 1

    def _init(self, args) -> int:
        print("=== Database Init ===")
        if self.dry_run:
            print(f"[DRY RUN] Would create tables: {', '.join(sorted(Base.metadata.tables))}")
            return 0
        self.run(self._async_init)
        print(f"✓ Tables ready ({len(Base.metadata.tables)})")
        return 0

    async def _async_init(self, engine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Created tables on {engine.url.get_backend_name()}")
