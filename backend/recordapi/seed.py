"""Seeding — replace the records collection with the sample data set.

Invariants:
    - Seed payloads pass the same RecordCreate validation as the API
    - The store is disconnected on both success and failure
    - main() returns 0 on success, 1 on any failure
"""

import asyncio
import logging
import sys

from recordapi.core.validation import validate_payload
from recordapi.infrastructure.database import DatabaseSessionManager
from recordapi.infrastructure.observability import setup_logging
from recordapi.models.record import Record
from recordapi.repositories.record_repository import RecordRepository
from recordapi.schemas.record import RecordCreate
from recordapi.server import load_settings

logger = logging.getLogger(__name__)

SAMPLE_RECORDS = [
    {"name": "Sample", "description": "This is a seeded example"},
]


async def seed_records(repository: RecordRepository) -> list[Record]:
    payloads = [validate_payload(RecordCreate, raw) for raw in SAMPLE_RECORDS]
    removed = await repository.delete_all()
    logger.info(f"Removed {removed} existing record(s)")
    return [await repository.create(p.model_dump()) for p in payloads]


async def run_seeds(db_manager: DatabaseSessionManager) -> int:
    try:
        logger.info("Starting database seeding...")
        await db_manager.connect()
        await db_manager.create_schema()
        async with db_manager.session() as db:
            seeded = await seed_records(RecordRepository(db))
        logger.info(f"Seeded {len(seeded)} example record(s)")
        return 0
    except Exception as e:
        logger.error(f"Seeding failed: {e}", exc_info=True)
        return 1
    finally:
        await db_manager.close()


def main() -> int:
    settings = load_settings()
    if settings is None:
        return 1
    setup_logging(settings.log_level, settings.log_format, settings.log_dir)
    db_manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    return asyncio.run(run_seeds(db_manager))


if __name__ == "__main__":
    sys.exit(main())
