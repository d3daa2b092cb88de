"""Record Repository — list-all and create over an injected AsyncSession.

Invariants:
    - The only two store access paths used by the API (list_all, create)
    - create() refuses a missing/empty name even if validation was bypassed
    - create() commits; callers never see an uncommitted record
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from recordapi.core.errors import ValidationError
from recordapi.models.record import Record

_WRITABLE_FIELDS = ("name", "description", "created_at")


class RecordRepository:

    def __init__(self, db: AsyncSession):
        self._db = db

    async def list_all(self) -> list[Record]:
        result = await self._db.execute(
            select(Record).order_by(Record.created_at, Record.id),
        )
        return list(result.scalars().all())

    async def create(self, data: Mapping[str, Any]) -> Record:
        fields = {k: data[k] for k in _WRITABLE_FIELDS if data.get(k) is not None}
        if not fields.get("name"):
            raise ValidationError("name is required")
        record = Record(**fields)
        self._db.add(record)
        await self._db.commit()
        await self._db.refresh(record)
        return record

    async def delete_all(self) -> int:
        """Remove every record. Used by the seed script only."""
        result = await self._db.execute(delete(Record))
        await self._db.commit()
        return result.rowcount or 0
