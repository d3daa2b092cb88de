"""Record Service — orchestration seam between controllers and the repository.

Holds no business rules today; every call is forwarded as-is.
"""

from collections.abc import Mapping
from typing import Any

from recordapi.models.record import Record
from recordapi.repositories.record_repository import RecordRepository


class RecordService:

    def __init__(self, repository: RecordRepository):
        self._repository = repository

    async def get_example_data(self) -> list[Record]:
        return await self._repository.list_all()

    async def create_example(self, data: Mapping[str, Any]) -> Record:
        return await self._repository.create(data)
