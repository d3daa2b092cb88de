"""Example Records — list and create endpoints under {API_PREFIX}/examples.

Invariants:
    - Every route depends on the app's API rate limiter
    - Bodies are validated by pydantic before the service is called
    - Handlers never catch: every error goes to the global handler
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from recordapi.api.dependencies import enforce_api_limit, get_record_service
from recordapi.core.envelope import created, success, to_json_response
from recordapi.models.record import Record
from recordapi.schemas.record import RecordCreate, RecordResponse
from recordapi.services.record_service import RecordService

router = APIRouter(tags=["examples"], dependencies=[Depends(enforce_api_limit)])


def _serialize(record: Record) -> dict:
    return RecordResponse.model_validate(record).model_dump(mode="json", by_alias=True)


@router.get("")
async def list_examples(
    service: RecordService = Depends(get_record_service),
) -> JSONResponse:
    """Return every stored record."""
    records = await service.get_example_data()
    return to_json_response(
        success("Fetched example data", [_serialize(r) for r in records]),
    )


@router.post("")
async def create_example(
    body: RecordCreate,
    service: RecordService = Depends(get_record_service),
) -> JSONResponse:
    record = await service.create_example(body.model_dump())
    return to_json_response(created("Example created", _serialize(record)))
