import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from conduit import Extension
from conduit_common import EventProcessingRequest, EventProcessingResponse

from ..dependencies import get_extension

router = APIRouter(tags=["Events"])
logger = logging.getLogger(__name__)


def rejected_response(response) -> JSONResponse:
    """A rejected batch: 400 with the single top-level error and no outcomes."""
    return JSONResponse(
        status_code=400,
        content=response.model_dump(mode="json", by_alias=True, exclude={"outcomes"}),
    )


@router.post("/events", response_model=EventProcessingResponse)
async def process_events(
    request: EventProcessingRequest,
    extension: Extension = Depends(get_extension),
):
    """
    Process an event batch.

    Returns one outcome per record in request order, or 400 with a single
    error when the batch is rejected (invalid configuration, failed setup).
    """
    try:
        response = await extension.process_event_processing_request(request)
    except Exception as e:
        logger.error(f"Failed to process batch {request.id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process batch: {str(e)}",
        )

    if response.is_rejected:
        return rejected_response(response)
    return response
