"""Entry Process — validate config, connect the store, serve, close on signal.

Invariants:
    - Invalid configuration → exit 1 before anything else starts
    - Store unreachable at startup → exit 1 before the listener binds
    - SIGINT/SIGTERM → stop the server, close the store, exit 0
    - Errors while closing the store are logged and never block exit
"""

import asyncio
import contextlib
import logging
import signal
import sys

import uvicorn
from pydantic import ValidationError as PydanticValidationError

from recordapi.config import Settings, get_settings
from recordapi.infrastructure.database import DatabaseSessionManager
from recordapi.infrastructure.observability import setup_logging
from recordapi.main import create_app

logger = logging.getLogger(__name__)


class _Server(uvicorn.Server):
    """uvicorn server whose signal handling is installed by serve() below."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self) -> None:
        pass


def load_settings() -> Settings | None:
    """Settings, or None (after logging the field errors) when the environment is invalid."""
    try:
        return get_settings()
    except PydanticValidationError as e:
        fields = {".".join(str(p) for p in err["loc"]): err["msg"] for err in e.errors()}
        logger.error(f"Invalid environment variables: {fields}")
        return None


def _install_signal_handlers(server: uvicorn.Server) -> None:
    loop = asyncio.get_running_loop()

    def request_shutdown(sig: signal.Signals) -> None:
        logger.info(
            f"Received {sig.name}. Starting graceful shutdown...",
            extra={"signal": sig.name},
        )
        server.should_exit = True

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown, sig)
        except NotImplementedError:
            signal.signal(sig, lambda signum, _frame: request_shutdown(signal.Signals(signum)))


async def serve(settings: Settings) -> int:
    """Connect the store, run the HTTP listener until a signal, then close. Returns exit code."""
    db_manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        await db_manager.connect()
        if settings.database_create_schema:
            await db_manager.create_schema()
    except Exception as e:
        logger.error(f"Error connecting to store: {e}", exc_info=True)
        await db_manager.close()
        return 1

    app = create_app(settings, db_manager=db_manager)
    server = _Server(uvicorn.Config(
        app, host="0.0.0.0", port=settings.port, log_config=None,
    ))
    _install_signal_handlers(server)
    logger.info(f"Server running on port {settings.port}")
    try:
        await server.serve()
    finally:
        try:
            await db_manager.close()
            logger.info("Store disconnected. Shutdown complete.")
        except Exception as e:
            logger.error(f"Error while disconnecting from store: {e}")
    return 0


def main() -> int:
    settings = load_settings()
    if settings is None:
        return 1
    setup_logging(settings.log_level, settings.log_format, settings.log_dir)
    return asyncio.run(serve(settings))


if __name__ == "__main__":
    sys.exit(main())
