"""Error Handlers — the single place where faults become failure envelopes.

Invariants:
    - AppError → its own status, message and code, verbatim
    - 404/405 from routing → NOT_FOUND; RequestValidationError → VALIDATION_ERROR (first violation)
    - Anything else → 500; message is "Internal Server Error" in production,
      the original message plus {name, message, stack} details otherwise
    - Every fault is logged (method, path, code, status) before the response is built
    - handle_error never raises: any failure inside it yields a fixed 500 body

Design Decisions:
    - One normaliser shared by FastAPI exception handlers and the request pipeline,
      so faults raised in middleware and in routes take the same path
"""

import logging
import traceback
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from recordapi.core.errors import (
    AppError, InternalServerError, NotFoundError, ValidationError,
)
from recordapi.core.validation import first_violation_message

logger = logging.getLogger(__name__)

CRITICAL_ERROR_BODY = {
    "success": False,
    "message": "Critical server error",
    "statusCode": 500,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(AppError, handle_error)
    app.add_exception_handler(RequestValidationError, handle_error)
    app.add_exception_handler(StarletteHTTPException, handle_error)
    app.add_exception_handler(Exception, handle_error)


async def handle_error(request: Request, exc: Exception) -> JSONResponse:
    """Normalise, log and serialise any fault. Sends exactly one response."""
    try:
        expose = _expose_internals(request)
        error = normalize_error(request, exc, expose)
        _log_fault(request, error, exc)
        return JSONResponse(
            status_code=error.status_code,
            content=jsonable_encoder(error.to_response(include_details=expose)),
            headers=error.headers or None,
        )
    except Exception as fatal:
        logger.critical(
            f"FatalErrorHandlerFailure: {fatal!r} while handling {exc!r}",
        )
        return JSONResponse(status_code=500, content=CRITICAL_ERROR_BODY)


def normalize_error(request: Request, exc: Exception, expose: bool) -> AppError:
    """Map any exception onto the AppError taxonomy."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, StarletteHTTPException):
        return _from_http_exception(request, exc)
    if isinstance(exc, RequestValidationError):
        errors = exc.errors()
        return ValidationError(
            first_violation_message(errors),
            details=[
                {"field": ".".join(str(p) for p in e.get("loc", ())), "type": e.get("type")}
                for e in errors
            ],
        )
    if not expose:
        return InternalServerError()
    return InternalServerError(
        str(exc) or "Internal Server Error",
        details={
            "name": type(exc).__name__,
            "message": str(exc),
            "stack": "".join(traceback.format_exception(exc)),
        },
    )


def _from_http_exception(
    request: Request, exc: StarletteHTTPException,
) -> AppError:
    # Unknown method on a known path is reported like an unknown path
    if exc.status_code in (404, 405):
        return NotFoundError(
            f"Route not found: {request.method} {request.url.path}",
        )
    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "HTTP_ERROR"
    return AppError(
        exc.status_code, str(exc.detail), code, headers=dict(exc.headers or {}),
    )


def _expose_internals(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return settings is not None and not settings.is_production


def _log_fault(
    request: Request, error: AppError, exc: Exception,
) -> None:
    extra = {
        "method": request.method,
        "path": request.url.path,
        "error_code": error.code,
        "status_code": error.status_code,
    }
    message = f"{error.code} ({error.status_code}) on {request.method} {request.url.path}: {error.message}"
    if error.status_code >= 500:
        logger.error(
            message, extra=extra,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
    else:
        logger.warning(message, extra=extra)
