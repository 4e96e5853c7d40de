"""
Audience processing.

Membership changes are processed like event batches: account settings are
validated first (batch-fatal), then every user profile is handed to the
membership handler in request order with the same per-profile fault isolation
as event records. Subscription changes concern a single audience, so any
failure rejects the request.
"""
import logging
from typing import Awaitable, Callable, List, Optional

from conduit_common import (
    AudienceMembershipChangeRequest,
    AudienceMembershipChangeResponse,
    AudienceSubscriptionRequest,
    AudienceSubscriptionResponse,
    BatchError,
    BatchStatus,
    Manifest,
    RecordOutcome,
    UserProfile,
)

from .dispatcher import UNSUPPORTED_TYPE, invoke_handler
from .errors import HandlerError
from .permissions import apply_profile_permissions
from .settings import validate_settings

logger = logging.getLogger(__name__)

PROFILE_RECORD_TYPE = "user_profile"

# Type aliases
MembershipHandler = Callable[[UserProfile, AudienceMembershipChangeRequest], Awaitable[None]]
SubscriptionHandler = Callable[[AudienceSubscriptionRequest, Manifest], Awaitable[None]]


class AudienceProcessor:
    """
    Processes audience membership and subscription requests for one manifest.

    Args:
        manifest: Published manifest; its audience block supplies the settings
        membership_handler: Called once per user profile
        subscription_handler: Called once per subscription request
    """

    def __init__(
        self,
        manifest: Manifest,
        membership_handler: Optional[MembershipHandler] = None,
        subscription_handler: Optional[SubscriptionHandler] = None,
    ):
        self.manifest = manifest
        self.membership_handler = membership_handler
        self.subscription_handler = subscription_handler

    async def process_membership_change(
        self,
        request: AudienceMembershipChangeRequest,
    ) -> AudienceMembershipChangeResponse:
        """Process a membership change batch; one outcome per user profile."""
        validation = validate_settings(request.configuration, self.manifest.audience_account_settings)
        if not validation.ok:
            error = validation.to_batch_error()
            logger.info(f"Rejected audience membership request {request.id}: {error.message}")
            return AudienceMembershipChangeResponse.rejected(request.id, error)

        outcomes: List[RecordOutcome] = []
        for index, profile in enumerate(request.user_profiles):
            if self.membership_handler is None:
                outcomes.append(RecordOutcome.skipped(index, profile.mpid, PROFILE_RECORD_TYPE, UNSUPPORTED_TYPE))
                continue
            profile = apply_profile_permissions(profile, self.manifest.permissions)
            outcomes.append(await invoke_handler(
                self.membership_handler,
                profile,
                request,
                index=index,
                record_id=profile.mpid,
                record_type=PROFILE_RECORD_TYPE,
            ))

        response = AudienceMembershipChangeResponse(
            request_id=request.id,
            status=BatchStatus.COMPLETE,
            outcomes=outcomes,
            warnings=[issue.message for issue in validation.warnings],
        )
        logger.info(
            f"Processed audience membership request {request.id}: "
            f"{response.processed_count} processed, {response.failed_count} failed"
        )
        return response

    async def process_subscription(self, request: AudienceSubscriptionRequest) -> AudienceSubscriptionResponse:
        """Process an audience subscription change."""
        account = validate_settings(request.configuration, self.manifest.audience_account_settings)
        connection = validate_settings(request.audience_connection_settings, self.manifest.audience_settings)

        for validation in (account, connection):
            if not validation.ok:
                error = validation.to_batch_error()
                logger.info(f"Rejected audience subscription {request.id}: {error.message}")
                return AudienceSubscriptionResponse(
                    request_id=request.id,
                    status=BatchStatus.REJECTED,
                    error=error,
                )

        if self.subscription_handler is not None:
            try:
                await self.subscription_handler(request, self.manifest)
            except Exception as e:
                error = HandlerError(e)
                logger.warning(f"Audience subscription handler failed for {request.id}: {error}", exc_info=True)
                return AudienceSubscriptionResponse(
                    request_id=request.id,
                    status=BatchStatus.REJECTED,
                    error=BatchError(code=HandlerError.code, message=f"{HandlerError.code}: {error}"),
                )

        logger.info(f"Audience {request.audience_id} {request.action.value} accepted ({request.id})")
        return AudienceSubscriptionResponse(
            request_id=request.id,
            status=BatchStatus.COMPLETE,
            warnings=[issue.message for issue in account.warnings + connection.warnings],
        )
