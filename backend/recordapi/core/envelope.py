"""Response Envelope — uniform success shape for every non-error response.

Invariants:
    - to_dict() always yields {success, message, data, statusCode}
    - Envelope is immutable; constructors per status family, no subclassing
"""

from dataclasses import dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


@dataclass(frozen=True)
class Envelope:
    success: bool
    message: str
    data: Any = None
    status_code: int = 200

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "statusCode": self.status_code,
        }


def success(message: str = "Success", data: Any = None) -> Envelope:
    return Envelope(True, message, data, 200)


def created(message: str = "Created", data: Any = None) -> Envelope:
    return Envelope(True, message, data, 201)


def updated(message: str = "Updated", data: Any = None) -> Envelope:
    return Envelope(True, message, data, 200)


def deleted(message: str = "Deleted", data: Any = None) -> Envelope:
    return Envelope(True, message, data, 200)


def to_json_response(envelope: Envelope) -> JSONResponse:
    """Serialize an envelope; pydantic models and datetimes go through jsonable_encoder."""
    return JSONResponse(
        status_code=envelope.status_code,
        content=jsonable_encoder(envelope.to_dict(), by_alias=True),
    )
