"""Route Dependencies — per-request wiring of limiter, store session and service.

Invariants:
    - Limiter and store manager are read from app.state, never from module globals
    - Tests swap get_record_service / get_db through app.dependency_overrides
"""

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from recordapi.infrastructure.database import get_db
from recordapi.repositories.record_repository import RecordRepository
from recordapi.services.record_service import RecordService


async def enforce_api_limit(request: Request, response: Response) -> None:
    await request.app.state.api_limiter(request, response)


def get_record_service(db: AsyncSession = Depends(get_db)) -> RecordService:
    return RecordService(RecordRepository(db))
