"""recordapi — FastAPI application factory and pipeline assembly.

Invariants:
    - Middleware order, outermost first: CORS → security headers → gzip →
      body-size cap → request pipeline (global rate limit) → routes
    - Health route, then the versioned API router; unmatched paths fall through
      to the NOT_FOUND handler, and every fault ends in handle_error
    - Store manager and limiter live on app.state (injected, not module globals)

Design Decisions:
    - Lifespan over @app.on_event; the lifespan only opens/closes a store it created
      itself, a manager passed in by the entry process stays owned by that process
    - Starlette add_middleware wraps outward, so middleware is added innermost first
    - The module-level `app` is built on first access, so importing this module
      never reads the environment; bad settings then log and exit 1 like the entry process
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from recordapi.api.error_handlers import register_error_handlers
from recordapi.api.middleware import (
    BodySizeLimitMiddleware, RequestPipeline, add_security_headers,
)
from recordapi.api.routes import health, records
from recordapi.config import Settings, get_settings
from recordapi.core.rate_limit import RateLimiter, create_api_limiter
from recordapi.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    owned = app.state.db_manager is None
    if owned:
        db_manager = DatabaseSessionManager(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        await db_manager.connect()
        if settings.database_create_schema:
            await db_manager.create_schema()
        app.state.db_manager = db_manager
    logger.info(f"recordapi started ({settings.node_env})")
    try:
        yield
    finally:
        logger.info("recordapi shutting down")
        if owned:
            await app.state.db_manager.close()
            app.state.db_manager = None


def create_app(
    settings: Settings | None = None,
    *,
    db_manager: DatabaseSessionManager | None = None,
    api_limiter: RateLimiter | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    docs_enabled = not settings.is_production
    app = FastAPI(
        title="recordapi",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.api_limiter = api_limiter or create_api_limiter()

    # Innermost first
    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=RequestPipeline([app.state.api_limiter.check]),
    )
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(GZipMiddleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=add_security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes, registered explicitly
    app.include_router(health.router)
    app.include_router(records.router, prefix=f"{settings.api_prefix}/examples")

    register_error_handlers(app)
    return app


def __getattr__(name: str):
    # `uvicorn recordapi.main:app`
    if name != "app":
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from recordapi.server import load_settings

    settings = load_settings()
    if settings is None:
        raise SystemExit(1)
    app = globals()["app"] = create_app(settings)
    return app
