"""Database Session Manager — async engine, sessions with rollback, connect/close lifecycle.

Invariants:
    - Every session auto-rolls-back on exception, then the exception propagates unchanged
    - The manager is owned by the app (app.state.db_manager), never a module global
    - get_db() fails loudly when no manager is attached

Design Decisions:
    - expire_on_commit=False: ORM objects stay readable after commit in async context
    - SQLite URLs skip pool sizing (aiosqlite uses a non-queue pool for :memory:)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from recordapi import models  # noqa: F401  registers tables on Base.metadata
from recordapi.db.base import Base

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Owns the async engine and hands out sessions."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        engine_kwargs: dict = {"echo": echo, "pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"DB session rolled back: {type(e).__name__}: {e}")
            raise
        finally:
            await session.close()

    async def connect(self) -> None:
        """Open a connection once so startup fails fast on a bad URL or dead store."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info(f"Store connected: {self.engine.url.render_as_string(hide_password=True)}")

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Store disconnected")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    db_manager: DatabaseSessionManager | None = getattr(
        request.app.state, "db_manager", None,
    )
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
