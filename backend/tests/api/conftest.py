"""API test fixtures — app factory with the store dependency overridden.

Invariants:
    - get_db overridden to use the per-test in-memory database
    - Each built app gets its own rate limiter, so counters never leak between tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from recordapi.infrastructure.database import get_db
from recordapi.main import create_app


@pytest.fixture
def build_app(make_settings, test_session_factory):
    """Factory: create_app(settings overrides, api_limiter=...) wired to the test DB."""
    def _build(api_limiter=None, **setting_overrides):
        app = create_app(make_settings(**setting_overrides), api_limiter=api_limiter)

        async def override_get_db():
            async with test_session_factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        return app
    return _build


@pytest.fixture
def open_client():
    """Factory: AsyncClient bound to an app (use with `async with`)."""
    def _open(app) -> AsyncClient:
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    return _open


@pytest.fixture
async def client(build_app, open_client):
    """FastAPI test client for the default (test-mode) app."""
    async with open_client(build_app()) as c:
        yield c
