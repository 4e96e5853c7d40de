"""
Sample extension.

Declares a manifest for a feature-flag service and registers handlers that
translate records into the payloads such a service would receive. A real
integration would send `context.state["outbox"]` to the destination API;
this sample keeps it in the batch context so it can be inspected.

Run it over HTTP with:

    CONDUIT_EXTENSION=conduit.sample:extension uvicorn conduit_service.main:app
"""
import logging
from typing import Any, Dict

from conduit_common import (
    AttributionEvent,
    AudienceMembershipChangeRequest,
    AudienceProcessingRegistration,
    AudienceSubscriptionRequest,
    CustomEvent,
    EventProcessingRegistration,
    EventType,
    IdentityEncoding,
    IdentityType,
    Manifest,
    Permissions,
    PushMessageReceiptEvent,
    PushSubscriptionEvent,
    RuntimeEnvironment,
    Setting,
    UserAttributeChangeEvent,
    UserIdentityChangeEvent,
    UserIdentityPermission,
    UserProfile,
)

from .context import BatchContext
from .errors import SkipRecord
from .extension import Extension

logger = logging.getLogger(__name__)

# Shown in the host UI
NAME = "LaunchDarkly"
VERSION = "1.0"

SETTING_SERVICE_TOKEN = "serviceToken"
SETTING_CLIENT_SIDE_ID = "clientSideID"

SUPPORTED_EVENT_TYPES = (
    EventType.CUSTOM_EVENT,
    EventType.PUSH_SUBSCRIPTION,
    EventType.PUSH_MESSAGE_RECEIPT,
    EventType.USER_ATTRIBUTE_CHANGE,
    EventType.USER_IDENTITY_CHANGE,
    EventType.ATTRIBUTION,
)


def build_manifest() -> Manifest:
    """
    Build the sample manifest.

    The same account settings serve event and audience processing; only a
    service token is required. Audience connections carry a segment-level
    client-side ID.
    """
    permissions = Permissions(
        allow_access_ip_address=True,
        allow_access_location=True,
        user_identities=(
            UserIdentityPermission(type=IdentityType.EMAIL, encoding=IdentityEncoding.RAW),
            UserIdentityPermission(type=IdentityType.CUSTOMER, encoding=IdentityEncoding.RAW),
        ),
    )

    service_token = Setting(
        key=SETTING_SERVICE_TOKEN,
        label="Service token",
        required=True,
        confidential=True,
        description="The LaunchDarkly service token",
    )
    account_settings = (service_token,)

    client_side_id = Setting(
        key=SETTING_CLIENT_SIDE_ID,
        label="Client side ID",
        visible=True,
        description="The LaunchDarkly client-side ID",
    )

    return Manifest(
        name=NAME,
        version=VERSION,
        description="Forwards events and audiences to LaunchDarkly.",
        permissions=permissions,
        event_processing=EventProcessingRegistration(
            account_settings=account_settings,
            supported_event_types=SUPPORTED_EVENT_TYPES,
            supported_environments=(RuntimeEnvironment.ANDROID, RuntimeEnvironment.IOS),
        ),
        audience_processing=AudienceProcessingRegistration(
            account_settings=account_settings,
            audience_connection_settings=(client_side_id,),
        ),
    )


extension = Extension(build_manifest)


def _emit(context: BatchContext, kind: str, event_id: str, data: Dict[str, Any]) -> None:
    context.state.setdefault("outbox", []).append({
        "kind": kind,
        "id": event_id,
        "user": context.state.get("user_key"),
        "data": data,
    })


@extension.on_setup
async def resolve_user(context: BatchContext) -> None:
    # Resolve the user once per batch instead of once per record
    identities = {identity.type: identity.value for identity in context.request.user_identities}
    context.state["user_key"] = (
        identities.get(IdentityType.CUSTOMER)
        or identities.get(IdentityType.EMAIL)
        or context.request.mpid
    )
    context.state["outbox"] = []


@extension.on_event(EventType.CUSTOM_EVENT)
async def process_custom_event(event: CustomEvent, context: BatchContext) -> None:
    _emit(context, "custom", event.id, {"key": event.name, "attributes": event.attributes})


@extension.on_event(EventType.PUSH_SUBSCRIPTION)
async def process_push_subscription(event: PushSubscriptionEvent, context: BatchContext) -> None:
    _emit(context, "push_subscription", event.id, {"token": event.token, "action": event.action})


@extension.on_event(EventType.PUSH_MESSAGE_RECEIPT)
async def process_push_message_receipt(event: PushMessageReceiptEvent, context: BatchContext) -> None:
    _emit(context, "push_receipt", event.id, {"payload": event.payload})


@extension.on_event(EventType.USER_ATTRIBUTE_CHANGE)
async def process_user_attribute_change(event: UserAttributeChangeEvent, context: BatchContext) -> None:
    value = None if event.deleted else event.value
    _emit(context, "identify", event.id, {"custom": {event.key: value}})


@extension.on_event(EventType.USER_IDENTITY_CHANGE, identities=[IdentityType.EMAIL, IdentityType.CUSTOMER])
async def process_user_identity_change(event: UserIdentityChangeEvent, context: BatchContext) -> None:
    if not event.added and not event.removed:
        raise SkipRecord("no permitted identity changes")
    _emit(context, "identify", event.id, {
        "added": {identity.type.value: identity.value for identity in event.added},
        "removed": [identity.type.value for identity in event.removed],
    })


@extension.on_event(EventType.ATTRIBUTION)
async def process_attribution(event: AttributionEvent, context: BatchContext) -> None:
    _emit(context, "attribution", event.id, {"partner": event.partner, "campaign": event.campaign})


@extension.on_audience_membership_change
async def process_membership(profile: UserProfile, request: AudienceMembershipChangeRequest) -> None:
    if not profile.audiences:
        raise SkipRecord("no audience changes")
    for membership in profile.audiences:
        logger.debug(f"{membership.action.value} user {profile.mpid} to audience {membership.audience_id}")


@extension.on_audience_subscription
async def process_subscription(request: AudienceSubscriptionRequest, manifest: Manifest) -> None:
    logger.debug(f"Audience {request.audience_id} ({request.audience_name}) {request.action.value}")
