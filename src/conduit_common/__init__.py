"""
Conduit Common - Shared DTOs for extensions and the host platform.
"""
from .models import (
    BaseDTO,
    FrozenDTO,
    # Enumerations
    EventType,
    RuntimeEnvironment,
    IdentityType,
    DeviceIdentityType,
    IdentityEncoding,
    SettingKind,
    # Manifest
    Setting,
    UserIdentityPermission,
    DeviceIdentityPermission,
    Permissions,
    EventProcessingRegistration,
    AudienceProcessingRegistration,
    RegistrationRequest,
    Manifest,
)

from .events import (
    UserIdentity,
    DeviceIdentity,
    Location,
    # Records
    Event,
    CustomEvent,
    PushSubscriptionEvent,
    PushMessageReceiptEvent,
    UserAttributeChangeEvent,
    UserIdentityChangeEvent,
    AttributionEvent,
    SessionStartEvent,
    SessionEndEvent,
    ScreenViewEvent,
    ErrorEvent,
    Product,
    ProductActionEvent,
    UnknownEvent,
    InvalidRecord,
    Record,
    # Batch
    EventProcessingRequest,
)

from .outcomes import (
    OutcomeStatus,
    BatchStatus,
    RecordOutcome,
    BatchError,
    BatchResult,
    EventProcessingResponse,
)

from .audience import (
    AudienceAction,
    AudienceSubscriptionAction,
    AudienceMembership,
    UserProfile,
    AudienceMembershipChangeRequest,
    AudienceMembershipChangeResponse,
    AudienceSubscriptionRequest,
    AudienceSubscriptionResponse,
)

__all__ = [
    "BaseDTO",
    "FrozenDTO",
    # Enumerations
    "EventType",
    "RuntimeEnvironment",
    "IdentityType",
    "DeviceIdentityType",
    "IdentityEncoding",
    "SettingKind",
    # Manifest
    "Setting",
    "UserIdentityPermission",
    "DeviceIdentityPermission",
    "Permissions",
    "EventProcessingRegistration",
    "AudienceProcessingRegistration",
    "RegistrationRequest",
    "Manifest",
    # Records
    "UserIdentity",
    "DeviceIdentity",
    "Location",
    "Event",
    "CustomEvent",
    "PushSubscriptionEvent",
    "PushMessageReceiptEvent",
    "UserAttributeChangeEvent",
    "UserIdentityChangeEvent",
    "AttributionEvent",
    "SessionStartEvent",
    "SessionEndEvent",
    "ScreenViewEvent",
    "ErrorEvent",
    "Product",
    "ProductActionEvent",
    "UnknownEvent",
    "InvalidRecord",
    "Record",
    # Batch
    "EventProcessingRequest",
    # Outcomes
    "OutcomeStatus",
    "BatchStatus",
    "RecordOutcome",
    "BatchError",
    "BatchResult",
    "EventProcessingResponse",
    # Audience
    "AudienceAction",
    "AudienceSubscriptionAction",
    "AudienceMembership",
    "UserProfile",
    "AudienceMembershipChangeRequest",
    "AudienceMembershipChangeResponse",
    "AudienceSubscriptionRequest",
    "AudienceSubscriptionResponse",
]

__version__ = "0.1.0"
