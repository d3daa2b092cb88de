"""Record Schemas — create payload and public record shape.

Invariants:
    - RecordCreate.name: required, at least 2 chars
    - RecordResponse serializes created_at as createdAt, always with a UTC offset
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordCreate(BaseModel):
    """Create payload, validated before any service code runs."""
    name: str = Field(min_length=2)
    description: str | None = None


class RecordResponse(BaseModel):
    """Public-facing record data."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    name: str
    description: str | None = None
    created_at: datetime = Field(serialization_alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """SQLite drops the offset on read; stored values are always UTC."""
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
