"""Root conftest — test environment and shared store fixtures.

Invariants:
    - Env defaults are set before any recordapi import, so get_settings() always validates
    - Every test gets a fresh in-memory SQLite database with the full schema

Design Decisions:
    - StaticPool: every session shares the one in-memory connection
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

os.environ.setdefault("NODE_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test-key-id")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test-secret-key")
os.environ.setdefault("AWS_S3_BUCKET_NAME", "test-bucket")
os.environ.setdefault("CLIENT_URL", "http://localhost:3000")
os.environ.setdefault("API_PREFIX", "/api/v1")
os.environ.setdefault("LOG_LEVEL", "error")

from recordapi.config import Settings  # noqa: E402
from recordapi.db.base import Base  # noqa: E402
from recordapi.models.record import Record  # noqa: E402, F401


@pytest.fixture
def make_settings():
    """Build Settings from the test environment plus keyword overrides (no .env file)."""
    def _make(**overrides) -> Settings:
        return Settings(_env_file=None, **overrides)
    return _make


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session
