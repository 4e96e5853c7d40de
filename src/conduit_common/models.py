"""
Manifest DTOs shared by extensions and the host platform.

These models describe what an extension is able to consume: the settings it
needs, the identities it may see and the event types and runtime environments
it supports. A manifest is built once per registration cycle and is immutable
afterwards, so every manifest-side model is frozen and holds tuples.
"""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class BaseDTO(BaseModel):
    """
    Base configuration for all DTOs.

    - Aliases are generated in camelCase for JSON serialization.
    - Allows population by field name (snake_case) in Python code.
    - Unknown fields are ignored for forward compatibility.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FrozenDTO(BaseDTO):
    """DTO that cannot be mutated after construction."""
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Enumerations
# =============================================================================


class EventType(str, Enum):
    """Record types an extension can declare support for."""
    CUSTOM_EVENT = "custom_event"
    PUSH_SUBSCRIPTION = "push_subscription"
    PUSH_MESSAGE_RECEIPT = "push_message_receipt"
    USER_ATTRIBUTE_CHANGE = "user_attribute_change"
    USER_IDENTITY_CHANGE = "user_identity_change"
    ATTRIBUTION = "attribution"
    SESSION_START = "session_start"
    SESSION_END = "session_end"
    SCREEN_VIEW = "screen_view"
    ERROR = "error"
    PRODUCT_ACTION = "product_action"


class RuntimeEnvironment(str, Enum):
    """Platform the data was collected on."""
    ANDROID = "android"
    IOS = "ios"
    MOBILEWEB = "mobileweb"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "RuntimeEnvironment":
        """Map any inbound value onto a member, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


class IdentityType(str, Enum):
    """User identity kinds."""
    CUSTOMER = "customer"
    EMAIL = "email"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    GOOGLE = "google"
    MICROSOFT = "microsoft"
    YAHOO = "yahoo"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> "IdentityType":
        """Map any inbound value onto a member, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


class DeviceIdentityType(str, Enum):
    """Device identity kinds."""
    ANDROID_ID = "android_id"
    GOOGLE_ADVERTISING_ID = "google_advertising_id"
    IOS_ADVERTISING_ID = "ios_advertising_id"
    IOS_VENDOR_ID = "ios_vendor_id"
    PUSH_TOKEN = "push_token"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> "DeviceIdentityType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


class IdentityEncoding(str, Enum):
    """How an identity value is encoded when handed to the extension."""
    RAW = "raw"
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"


class SettingKind(str, Enum):
    """Value type of a configuration setting."""
    TEXT = "text"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"


# =============================================================================
# Settings & Permissions
# =============================================================================


class Setting(FrozenDTO):
    """A single configuration field the extension needs from the customer."""
    key: str = Field(..., min_length=1, description="Unique key within the owning settings list.")
    label: str = Field(..., description="Human-readable label shown in the host UI.")
    kind: SettingKind = Field(default=SettingKind.TEXT, description="Value type of the setting.")
    required: bool = Field(default=False, description="Whether a value must be supplied.")
    confidential: bool = Field(
        default=False,
        description="Confidential values are never logged or echoed back.",
    )
    visible: bool = Field(default=True, description="Whether the host shows this setting.")
    description: str = Field(default="", description="Help text for the setting.")
    default_value: Optional[str] = Field(default=None, description="Value used when none is configured.")


def _ensure_unique_keys(settings: Tuple[Setting, ...]) -> Tuple[Setting, ...]:
    seen = set()
    for setting in settings:
        if setting.key in seen:
            raise ValueError(f"Duplicate setting key '{setting.key}'")
        seen.add(setting.key)
    return settings


def _dedupe(values: tuple) -> tuple:
    return tuple(dict.fromkeys(values))


class UserIdentityPermission(FrozenDTO):
    """Permission to receive one user identity type in a given encoding."""
    type: IdentityType
    encoding: IdentityEncoding = IdentityEncoding.RAW
    required: bool = False


class DeviceIdentityPermission(FrozenDTO):
    """Permission to receive one device identity type in a given encoding."""
    type: DeviceIdentityType
    encoding: IdentityEncoding = IdentityEncoding.RAW


class Permissions(FrozenDTO):
    """Data the host is allowed to pass to the extension."""
    allow_access_ip_address: bool = False
    allow_access_location: bool = False
    user_identities: Tuple[UserIdentityPermission, ...] = ()
    device_identities: Tuple[DeviceIdentityPermission, ...] = ()

    @field_validator("user_identities", "device_identities")
    @classmethod
    def check_unique_identity_types(cls, value: tuple) -> tuple:
        types = [permission.type for permission in value]
        if len(types) != len(set(types)):
            raise ValueError("Identity permissions must not repeat an identity type")
        return value

    def user_identity_permission(self, identity_type) -> Optional[UserIdentityPermission]:
        """Return the permission for an identity type, or None when not permitted."""
        for permission in self.user_identities:
            if permission.type == identity_type:
                return permission
        return None

    def device_identity_permission(self, identity_type) -> Optional[DeviceIdentityPermission]:
        for permission in self.device_identities:
            if permission.type == identity_type:
                return permission
        return None


# =============================================================================
# Registration
# =============================================================================


class EventProcessingRegistration(FrozenDTO):
    """Event processing capability block."""
    account_settings: Tuple[Setting, ...] = ()
    supported_event_types: Tuple[EventType, ...] = Field(..., min_length=1)
    supported_environments: Tuple[RuntimeEnvironment, ...] = ()
    max_data_age_hours: int = Field(
        default=24,
        ge=0,
        description="Oldest data the extension accepts, in hours. Enforced by the host before a batch is sent.",
    )

    @field_validator("account_settings")
    @classmethod
    def check_unique_keys(cls, value: Tuple[Setting, ...]) -> Tuple[Setting, ...]:
        return _ensure_unique_keys(value)

    @field_validator("supported_event_types", "supported_environments")
    @classmethod
    def dedupe_sets(cls, value: tuple) -> tuple:
        return _dedupe(value)


class AudienceProcessingRegistration(FrozenDTO):
    """Audience processing capability block."""
    account_settings: Tuple[Setting, ...] = ()
    audience_connection_settings: Tuple[Setting, ...] = ()

    @field_validator("account_settings", "audience_connection_settings")
    @classmethod
    def check_unique_keys(cls, value: Tuple[Setting, ...]) -> Tuple[Setting, ...]:
        return _ensure_unique_keys(value)


class RegistrationRequest(BaseDTO):
    """Handshake request sent by the host; carries nothing the manifest depends on."""
    id: Optional[str] = None
    timestamp_ms: Optional[int] = None


class Manifest(FrozenDTO):
    """
    Published description of what an extension supports.

    Serializes to the registration response document: name, version,
    description, permissions and two independent capability blocks.
    """
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    description: str = ""
    permissions: Permissions = Field(default_factory=Permissions)
    event_processing: Optional[EventProcessingRegistration] = None
    audience_processing: Optional[AudienceProcessingRegistration] = None

    @model_validator(mode="after")
    def check_declares_capability(self) -> "Manifest":
        if self.event_processing is None and self.audience_processing is None:
            raise ValueError("Manifest must declare event or audience processing")
        return self

    @property
    def account_settings(self) -> Tuple[Setting, ...]:
        if self.event_processing is None:
            return ()
        return self.event_processing.account_settings

    @property
    def audience_account_settings(self) -> Tuple[Setting, ...]:
        if self.audience_processing is None:
            return ()
        return self.audience_processing.account_settings

    @property
    def audience_settings(self) -> Tuple[Setting, ...]:
        if self.audience_processing is None:
            return ()
        return self.audience_processing.audience_connection_settings

    @property
    def supported_event_types(self) -> Tuple[EventType, ...]:
        if self.event_processing is None:
            return ()
        return self.event_processing.supported_event_types

    @property
    def supported_environments(self) -> Tuple[RuntimeEnvironment, ...]:
        if self.event_processing is None:
            return ()
        return self.event_processing.supported_environments
