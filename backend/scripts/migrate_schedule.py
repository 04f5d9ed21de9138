"""Upgrade the stored schedule from the legacy day-offset format to presets.

Usage (from backend/):
    python -m scripts.migrate_schedule
"""
import asyncio
import sys

from signage.config import configure_logging, settings
from signage.core.exceptions import MigrationError
from signage.db.engine import create_engine, create_session_factory
from signage.main import ensure_tables
from signage.services.schedule_migration import MigrationStatus, migrate_schedule


async def migrate() -> int:
    print("Starting schedule migration...")

    engine = create_engine(settings.DATABASE_URL)
    try:
        await ensure_tables(engine)
        async with create_session_factory(engine)() as db:
            result = await migrate_schedule(db)
    except MigrationError as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    if result.status == MigrationStatus.BOOTSTRAPPED:
        print("No schedule found, created default schedule")
    elif result.status == MigrationStatus.ALREADY_MIGRATED:
        print("Schedule already in new format")
    else:
        print("Migration completed successfully!")
    print(f"Schedule version: {result.version}")
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(migrate()))
