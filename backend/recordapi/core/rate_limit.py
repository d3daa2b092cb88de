"""Rate Limiting — moving-window request throttling keyed by session or address.

Invariants:
    - Key = sessionId cookie if present, else peer address
    - Exceeding max within window_seconds raises TooManyRequestsError (429)
    - Only the standard RateLimit-* headers are produced, never X-RateLimit-*
    - A limiter counts a given request at most once, however many times it is checked

Design Decisions:
    - `limits` (the engine under slowapi) for storage and strategy: MemoryStorage
      is lock-guarded, so per-key counters are safe under concurrent requests
    - One storage per limiter instance: presets never share counters
"""

import math
import time
from typing import Callable

from fastapi import Request, Response
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from recordapi.core.errors import TooManyRequestsError

DEFAULT_MESSAGE = "Too many requests, please try again later."
SESSION_COOKIE = "sessionId"

KeyFunc = Callable[[Request], str]


def client_key(request: Request) -> str:
    """Session cookie, else peer address."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        return f"session:{session_id}"
    if request.client and request.client.host:
        return f"ip:{request.client.host}"
    return "anonymous"


class RateLimiter:
    """Per-key request counter over a moving time window."""

    def __init__(
        self,
        window_seconds: int,
        max_requests: int,
        message: str = DEFAULT_MESSAGE,
        key_func: KeyFunc | None = None,
        name: str = "api",
    ):
        if window_seconds < 1 or max_requests < 1:
            raise ValueError("window_seconds and max_requests must be >= 1")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.message = message
        self.name = name
        self._key_func = key_func or client_key
        self._item = RateLimitItemPerSecond(max_requests, window_seconds)
        self._storage = MemoryStorage()
        self._strategy = MovingWindowRateLimiter(self._storage)

    async def check(self, request: Request) -> dict[str, str]:
        """Count the request and return rate-limit headers; raise when over the limit."""
        seen: dict[int, dict[str, str]] = getattr(request.state, "rate_limits", None) or {}
        if id(self) in seen:
            return seen[id(self)]

        key = self._key_func(request)
        allowed = self._strategy.hit(self._item, self.name, key)
        headers = self._headers(key)
        seen[id(self)] = headers
        request.state.rate_limits = seen

        if not allowed:
            raise TooManyRequestsError(
                self.message,
                headers={**headers, "Retry-After": headers["RateLimit-Reset"]},
            )
        return headers

    async def __call__(self, request: Request, response: Response) -> None:
        """FastAPI dependency form: check and copy headers onto the response."""
        headers = await self.check(request)
        response.headers.update(headers)

    def reset(self) -> None:
        self._storage.reset()

    def _headers(self, key: str) -> dict[str, str]:
        reset_at, remaining = self._strategy.get_window_stats(
            self._item, self.name, key,
        )
        reset_in = max(0, math.ceil(reset_at - time.time()))
        return {
            "RateLimit-Policy": f"{self.max_requests};w={self.window_seconds}",
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(max(0, remaining)),
            "RateLimit-Reset": str(reset_in),
        }


def create_api_limiter() -> RateLimiter:
    """General API limiter: 100 requests per 15 minutes."""
    return RateLimiter(window_seconds=15 * 60, max_requests=100, name="api")


def create_auth_limiter() -> RateLimiter:
    """Auth-attempt limiter: 5 requests per 5 minutes. Not attached to any route yet."""
    return RateLimiter(
        window_seconds=5 * 60,
        max_requests=5,
        message="Too many authentication attempts, please try again later.",
        name="auth",
    )
