"""HTTP Middleware — security headers, body-size cap and the ordered request pipeline.

Invariants:
    - The body cap counts the bytes actually received; a declared Content-Length
      over the cap is rejected before any byte is read
    - Interceptors run in list order; the first one that raises (or returns a
      Response) short-circuits the rest and the route
    - Every exception below the pipeline is turned into a response by handle_error
    - Rate-limit headers gathered during the request are copied onto the final response
"""

from typing import Awaitable, Callable, Sequence

from fastapi import Request, Response
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from recordapi.api.error_handlers import handle_error
from recordapi.core.errors import PayloadTooLargeError

Interceptor = Callable[[Request], Awaitable[object]]
CallNext = Callable[[Request], Awaitable[Response]]

# Browser-hardening defaults applied to every response
SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


async def add_security_headers(request: Request, call_next: CallNext) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


class BodySizeLimitMiddleware:
    """Reads the request body up front and replays it to the app; 413 past max_bytes.

    Chunked bodies carry no Content-Length, so the running total of received
    bytes is what enforces the cap.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        try:
            body = await self._read_body(scope, receive)
        except PayloadTooLargeError as exc:
            response = await handle_error(Request(scope), exc)
            await response(scope, receive, send)
            return
        if body is None:
            return  # client disconnected mid-body
        await self.app(scope, _replay(body, receive), send)

    async def _read_body(self, scope: Scope, receive: Receive) -> bytes | None:
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > self.max_bytes:
            raise PayloadTooLargeError(self.max_bytes)

        chunks: list[bytes] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return None
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.max_bytes:
                raise PayloadTooLargeError(self.max_bytes)
            chunks.append(chunk)
            more_body = message.get("more_body", False)
        return b"".join(chunks)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Receive callable that yields the buffered body once, then defers to the server."""
    delivered = False

    async def replay_receive() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay_receive


class RequestPipeline:
    """Runs interceptors in order, then the app; routes every fault to handle_error."""

    def __init__(self, interceptors: Sequence[Interceptor]):
        self.interceptors = list(interceptors)

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        try:
            response = await self._run(request, call_next)
        except Exception as exc:
            response = await handle_error(request, exc)
        self._apply_rate_limit_headers(request, response)
        return response

    async def _run(self, request: Request, call_next: CallNext) -> Response:
        for interceptor in self.interceptors:
            result = await interceptor(request)
            if isinstance(result, Response):
                return result
        return await call_next(request)

    @staticmethod
    def _apply_rate_limit_headers(request: Request, response: Response) -> None:
        for headers in (getattr(request.state, "rate_limits", None) or {}).values():
            for name, value in headers.items():
                response.headers.setdefault(name, value)
