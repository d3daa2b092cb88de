"""Payload Validation — pydantic schema in, parsed model or first violation out.

Invariants:
    - Failure always raises ValidationError (400, VALIDATION_ERROR)
    - The message names the first violated constraint only
    - Same message format for HTTP bodies (RequestValidationError) and direct calls
"""

from typing import Any, Sequence, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from recordapi.core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def first_violation_message(errors: Sequence[dict]) -> str:
    """Format the first pydantic error as '<field path>: <message>'."""
    if not errors:
        return "Validation failed"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Malformed JSON body"
    # FastAPI prefixes body errors with "body"; clients only know field names
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {message}" if loc else message


def validate_payload(schema: type[ModelT], payload: Any) -> ModelT:
    """Parse payload against schema or raise ValidationError."""
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False)
        raise ValidationError(
            first_violation_message(errors),
            details=[
                {"field": ".".join(str(p) for p in err["loc"]), "type": err["type"]}
                for err in errors
            ],
        ) from e
