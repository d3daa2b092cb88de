"""Record ORM — the single persisted document type.

Invariants:
    - id is a UUID primary key assigned on insert
    - name is non-nullable text (storage-level guard behind API validation)
    - created_at defaults to now (UTC) when the caller does not supply it; indexed for listing order
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recordapi.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(Base):
    __tablename__ = "records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True,
    )

    def __repr__(self) -> str:
        return f"Record(id={self.id!s}, name={self.name!r})"
