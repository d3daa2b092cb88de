"""Rate limiting through the pipeline — 429 envelope, standard headers, window reset.

Design Decisions:
    - Short windows (seconds) stand in for the 15-minute production preset
"""

import asyncio

from recordapi.core.rate_limit import RateLimiter

URL = "/api/v1/examples"


async def test_excess_requests_get_429_envelope(build_app, open_client):
    app = build_app(api_limiter=RateLimiter(window_seconds=60, max_requests=3))
    async with open_client(app) as c:
        for _ in range(3):
            assert (await c.get(URL)).status_code == 200

        res = await c.get(URL)

    assert res.status_code == 429
    assert res.json() == {
        "success": False,
        "message": "Too many requests, please try again later.",
        "statusCode": 429,
        "code": "TOO_MANY_REQUESTS",
    }
    assert res.headers["ratelimit-remaining"] == "0"
    assert int(res.headers["retry-after"]) >= 0


async def test_standard_headers_only(build_app, open_client):
    app = build_app(api_limiter=RateLimiter(window_seconds=60, max_requests=5))
    async with open_client(app) as c:
        res = await c.get(URL)

    assert res.headers["ratelimit-limit"] == "5"
    assert res.headers["ratelimit-policy"] == "5;w=60"
    assert "ratelimit-reset" in res.headers
    assert not any(name.lower().startswith("x-ratelimit") for name in res.headers)


async def test_route_and_global_limiter_count_a_request_once(build_app, open_client):
    app = build_app(api_limiter=RateLimiter(window_seconds=60, max_requests=3))
    async with open_client(app) as c:
        first = await c.get(URL)
        second = await c.get(URL)

    assert first.headers["ratelimit-remaining"] == "2"
    assert second.headers["ratelimit-remaining"] == "1"


async def test_count_resets_after_window(build_app, open_client):
    app = build_app(api_limiter=RateLimiter(window_seconds=1, max_requests=2))
    async with open_client(app) as c:
        await c.get(URL)
        await c.get(URL)
        assert (await c.get(URL)).status_code == 429

        await asyncio.sleep(1.2)

        assert (await c.get(URL)).status_code == 200


async def test_session_cookie_gets_its_own_bucket(build_app, open_client):
    app = build_app(api_limiter=RateLimiter(window_seconds=60, max_requests=1))
    async with open_client(app) as c:
        alice = {"cookie": "sessionId=alice"}
        bob = {"cookie": "sessionId=bob"}
        assert (await c.get(URL, headers=alice)).status_code == 200
        assert (await c.get(URL, headers=alice)).status_code == 429
        assert (await c.get(URL, headers=bob)).status_code == 200
        # No cookie: keyed by address, still a fresh bucket
        assert (await c.get(URL)).status_code == 200


async def test_rate_limited_request_never_reaches_the_service(build_app, open_client):
    calls = []

    class _CountingService:
        async def get_example_data(self):
            calls.append("list")
            return []

    from recordapi.api.dependencies import get_record_service

    app = build_app(api_limiter=RateLimiter(window_seconds=60, max_requests=1))
    app.dependency_overrides[get_record_service] = lambda: _CountingService()
    async with open_client(app) as c:
        await c.get(URL)
        res = await c.get(URL)

    assert res.status_code == 429
    assert calls == ["list"]
