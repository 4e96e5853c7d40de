import logging

from fastapi import APIRouter, Depends, HTTPException

from conduit import Extension
from conduit_common import (
    AudienceMembershipChangeRequest,
    AudienceMembershipChangeResponse,
    AudienceSubscriptionRequest,
    AudienceSubscriptionResponse,
)

from ..dependencies import get_extension
from .events import rejected_response

router = APIRouter(prefix="/audience", tags=["Audience"])
logger = logging.getLogger(__name__)


@router.post("/membership", response_model=AudienceMembershipChangeResponse)
async def process_membership_change(
    request: AudienceMembershipChangeRequest,
    extension: Extension = Depends(get_extension),
):
    """
    Process audience membership changes; one outcome per user profile.
    """
    try:
        response = await extension.process_audience_membership_change_request(request)
    except Exception as e:
        logger.error(f"Failed to process membership request {request.id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to process membership request: {str(e)}")

    if response.is_rejected:
        return rejected_response(response)
    return response


@router.post("/subscription", response_model=AudienceSubscriptionResponse)
async def process_subscription(
    request: AudienceSubscriptionRequest,
    extension: Extension = Depends(get_extension),
):
    """
    Process an audience subscription change.
    """
    try:
        response = await extension.process_audience_subscription_request(request)
    except Exception as e:
        logger.error(f"Failed to process subscription request {request.id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to process subscription request: {str(e)}")

    if response.is_rejected:
        return rejected_response(response)
    return response
