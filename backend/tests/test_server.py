"""Entry process — exit codes for bad config, unreachable store and SIGTERM."""

import asyncio
import os
import signal

import pytest

from recordapi import server
from recordapi.config import get_settings


@pytest.fixture
def fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_invalid_environment_exits_with_1(monkeypatch, fresh_settings_cache):
    monkeypatch.delenv("CLIENT_URL")
    monkeypatch.setenv("ACCESS_TOKEN_SECRET", "short")
    assert server.load_settings() is None
    assert server.main() == 1


def test_valid_environment_loads(fresh_settings_cache):
    settings = server.load_settings()
    assert settings is not None
    assert settings.client_url == "http://localhost:3000"


async def test_unreachable_store_exits_with_1(make_settings, tmp_path, monkeypatch):
    started = []
    monkeypatch.setattr(server._Server, "serve", lambda self: started.append(self))
    settings = make_settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}",
    )
    assert await server.serve(settings) == 1
    assert started == []


async def test_clean_run_closes_store_and_exits_0(make_settings, tmp_path, monkeypatch):
    closed = []

    async def fake_serve(self, sockets=None):
        assert self.config.app.state.db_manager is not None

    original_close = server.DatabaseSessionManager.close

    async def tracking_close(self):
        closed.append(self)
        await original_close(self)

    monkeypatch.setattr(server._Server, "serve", fake_serve)
    monkeypatch.setattr(server.DatabaseSessionManager, "close", tracking_close)
    settings = make_settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'ok.db'}")

    assert await server.serve(settings) == 0
    assert len(closed) == 1


async def test_sigterm_stops_the_server_closes_store_and_exits_0(
    make_settings, tmp_path, monkeypatch,
):
    servers, closed = [], []
    install = server._install_signal_handlers
    original_close = server.DatabaseSessionManager.close

    def tracking_install(srv):
        servers.append(srv)
        install(srv)

    async def tracking_close(self):
        closed.append(self)
        await original_close(self)

    monkeypatch.setattr(server, "_install_signal_handlers", tracking_install)
    monkeypatch.setattr(server.DatabaseSessionManager, "close", tracking_close)
    settings = make_settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'signal.db'}", port=0,
    )

    task = asyncio.create_task(server.serve(settings))

    async def started():
        while not (servers and servers[0].started):
            assert not task.done(), "server exited before startup"
            await asyncio.sleep(0.02)

    await asyncio.wait_for(started(), timeout=10)
    os.kill(os.getpid(), signal.SIGTERM)

    assert await asyncio.wait_for(task, timeout=10) == 0
    assert servers[0].should_exit is True
    assert len(closed) == 1


@pytest.fixture
def lazy_main():
    from recordapi import main

    main.__dict__.pop("app", None)
    yield main
    main.__dict__.pop("app", None)


def test_uvicorn_app_attribute_exits_1_on_invalid_environment(
    monkeypatch, fresh_settings_cache, lazy_main, caplog,
):
    monkeypatch.delenv("CLIENT_URL")

    with caplog.at_level("ERROR", logger="recordapi.server"):
        with pytest.raises(SystemExit) as exc_info:
            lazy_main.app
    assert exc_info.value.code == 1
    assert "Invalid environment variables" in caplog.text
    assert "client_url" in caplog.text


def test_uvicorn_app_attribute_is_built_once(fresh_settings_cache, lazy_main):
    from fastapi import FastAPI

    app = lazy_main.app
    assert isinstance(app, FastAPI)
    assert lazy_main.app is app
