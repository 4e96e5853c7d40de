import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from conduit import Extension, RegistrationService
from conduit_common import RegistrationRequest

from ..dependencies import get_extension

router = APIRouter(tags=["Registration"])
logger = logging.getLogger(__name__)


@router.get("/registration")
async def get_registration(extension: Extension = Depends(get_extension)) -> Dict[str, Any]:
    """
    Return the extension's manifest.
    """
    return RegistrationService.document(extension.process_registration_request())


@router.post("/registration")
async def register(
    request: Optional[RegistrationRequest] = Body(default=None),
    extension: Extension = Depends(get_extension),
) -> Dict[str, Any]:
    """
    Registration handshake.

    Returns the manifest: name, version, description, permissions and the
    event and audience processing capability blocks.
    """
    manifest = extension.process_registration_request(request)
    logger.info(f"Registration requested for {manifest.name}")
    return RegistrationService.document(manifest)
