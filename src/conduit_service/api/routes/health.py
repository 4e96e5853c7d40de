from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from conduit import Extension

from ..dependencies import get_extension

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    extension: str = Field(..., description="Hosted extension name")
    version: str = Field(..., description="Hosted extension version")
    handlers: int = Field(..., description="Number of registered record handlers")


@router.get("/health", response_model=HealthResponse)
async def health_check(extension: Extension = Depends(get_extension)) -> HealthResponse:
    """
    Health check endpoint.

    Returns service status and the hosted extension's identity.
    """
    return HealthResponse(
        status="healthy",
        extension=extension.name,
        version=extension.version,
        handlers=len(extension.handlers),
    )
