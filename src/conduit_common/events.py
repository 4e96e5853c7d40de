"""
Record and batch DTOs for event processing.

A batch (`EventProcessingRequest`) carries one user's data for one runtime
environment: the customer's configuration for the extension, the user's
identities and attributes, and an ordered list of typed records.

Records form a tagged union on the ``type`` field. Tags the extension does not
know about are parsed into `UnknownEvent` rather than rejected, so a newer host
can send record types an older extension has never heard of and still get a
per-record outcome back.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from .models import (
    BaseDTO,
    DeviceIdentityType,
    EventType,
    IdentityEncoding,
    IdentityType,
    RuntimeEnvironment,
)


# =============================================================================
# Identities & user data
# =============================================================================


class UserIdentity(BaseDTO):
    """One user identity value. Unrecognised identity types become OTHER."""
    type: IdentityType
    encoding: IdentityEncoding = IdentityEncoding.RAW
    value: str

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> IdentityType:
        return IdentityType.parse(value)


class DeviceIdentity(BaseDTO):
    """One device identity value. Unrecognised identity types become OTHER."""
    type: DeviceIdentityType
    encoding: IdentityEncoding = IdentityEncoding.RAW
    value: str

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> DeviceIdentityType:
        return DeviceIdentityType.parse(value)


class Location(BaseDTO):
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


# =============================================================================
# Records
# =============================================================================


class Event(BaseDTO):
    """Fields shared by every record."""
    id: str = Field(default_factory=lambda: str(uuid4()), description="Record ID")
    timestamp_ms: Optional[int] = Field(default=None, description="Epoch milliseconds when the event occurred")
    environment: Optional[RuntimeEnvironment] = Field(
        default=None,
        description="Per-record runtime environment; falls back to the batch environment",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, value: Any) -> Any:
        if value is None:
            return None
        return RuntimeEnvironment.parse(value)


class CustomEvent(Event):
    type: Literal["custom_event"] = "custom_event"
    name: str
    custom_type: str = "other"
    attributes: Dict[str, str] = Field(default_factory=dict)


class PushSubscriptionEvent(Event):
    type: Literal["push_subscription"] = "push_subscription"
    token: str
    action: Literal["subscribe", "unsubscribe"] = "subscribe"


class PushMessageReceiptEvent(Event):
    type: Literal["push_message_receipt"] = "push_message_receipt"
    payload: str = ""
    message_type: Optional[str] = None


class UserAttributeChangeEvent(Event):
    type: Literal["user_attribute_change"] = "user_attribute_change"
    key: str
    value: Any = None
    old_value: Any = None
    deleted: bool = False
    is_new_attribute: bool = False


class UserIdentityChangeEvent(Event):
    type: Literal["user_identity_change"] = "user_identity_change"
    added: List[UserIdentity] = Field(default_factory=list)
    removed: List[UserIdentity] = Field(default_factory=list)


class AttributionEvent(Event):
    type: Literal["attribution"] = "attribution"
    partner: str
    publisher: Optional[str] = None
    campaign: Optional[str] = None
    action: Optional[str] = None


class SessionStartEvent(Event):
    type: Literal["session_start"] = "session_start"
    session_id: Optional[str] = None


class SessionEndEvent(Event):
    type: Literal["session_end"] = "session_end"
    session_id: Optional[str] = None
    session_length_ms: Optional[int] = None


class ScreenViewEvent(Event):
    type: Literal["screen_view"] = "screen_view"
    screen_name: str
    attributes: Dict[str, str] = Field(default_factory=dict)


class ErrorEvent(Event):
    type: Literal["error"] = "error"
    message: str = ""
    stack_trace: Optional[str] = None


class Product(BaseDTO):
    id: str
    name: Optional[str] = None
    price: Optional[float] = None
    quantity: float = 1


class ProductActionEvent(Event):
    type: Literal["product_action"] = "product_action"
    action: str
    total_amount: Optional[float] = None
    currency_code: Optional[str] = None
    products: List[Product] = Field(default_factory=list)


class UnknownEvent(Event):
    """A record whose type tag this extension does not recognise."""
    model_config = ConfigDict(extra="allow")

    type: str = "unknown"


class InvalidRecord(UnknownEvent):
    """
    Placeholder for a record that could not be parsed as its declared type.

    It keeps the record's ID and type tag so the batch can still report a
    failed outcome at the record's position.
    """
    error: str = ""


UNKNOWN_TAG = "unknown"

RECORD_MODELS: Dict[str, type] = {
    EventType.CUSTOM_EVENT.value: CustomEvent,
    EventType.PUSH_SUBSCRIPTION.value: PushSubscriptionEvent,
    EventType.PUSH_MESSAGE_RECEIPT.value: PushMessageReceiptEvent,
    EventType.USER_ATTRIBUTE_CHANGE.value: UserAttributeChangeEvent,
    EventType.USER_IDENTITY_CHANGE.value: UserIdentityChangeEvent,
    EventType.ATTRIBUTION.value: AttributionEvent,
    EventType.SESSION_START.value: SessionStartEvent,
    EventType.SESSION_END.value: SessionEndEvent,
    EventType.SCREEN_VIEW.value: ScreenViewEvent,
    EventType.ERROR.value: ErrorEvent,
    EventType.PRODUCT_ACTION.value: ProductActionEvent,
}


def tag_value(tag: Any) -> str:
    """Normalize an enum member or string tag to its plain string value."""
    return str(getattr(tag, "value", tag))


def record_tag(value: Any) -> str:
    """Discriminator for the record union; unknown tags map to UnknownEvent."""
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    if tag is None:
        return UNKNOWN_TAG
    if isinstance(value, UnknownEvent):
        return UNKNOWN_TAG
    tag = tag_value(tag)
    return tag if tag in RECORD_MODELS else UNKNOWN_TAG


Record = Annotated[
    Union[
        Annotated[CustomEvent, Tag("custom_event")],
        Annotated[PushSubscriptionEvent, Tag("push_subscription")],
        Annotated[PushMessageReceiptEvent, Tag("push_message_receipt")],
        Annotated[UserAttributeChangeEvent, Tag("user_attribute_change")],
        Annotated[UserIdentityChangeEvent, Tag("user_identity_change")],
        Annotated[AttributionEvent, Tag("attribution")],
        Annotated[SessionStartEvent, Tag("session_start")],
        Annotated[SessionEndEvent, Tag("session_end")],
        Annotated[ScreenViewEvent, Tag("screen_view")],
        Annotated[ErrorEvent, Tag("error")],
        Annotated[ProductActionEvent, Tag("product_action")],
        Annotated[UnknownEvent, Tag(UNKNOWN_TAG)],
    ],
    Discriminator(record_tag),
]

_record_adapter = TypeAdapter(Record)


def describe_validation_error(error: ValidationError, tag: str) -> str:
    """Render a record's validation error as ``ValidationError: field: message``."""
    issues = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"] if part != tag)
        issues.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return f"ValidationError: {'; '.join(issues)}"


def parse_record(value: Any) -> Any:
    """
    Parse one record of a batch.

    A record that does not fit its declared type becomes an `InvalidRecord`
    instead of failing the whole batch.
    """
    try:
        return _record_adapter.validate_python(value)
    except ValidationError as e:
        tag = record_tag(value)
        raw = value if isinstance(value, dict) else {}
        record_id = raw.get("id")
        return InvalidRecord(
            id=str(record_id) if record_id is not None else str(uuid4()),
            type=tag_value(raw.get("type", tag)),
            error=describe_validation_error(e, tag),
        )


def stringify_configuration(value: Any) -> Any:
    """Coerce scalar configuration values to the strings the host sends."""
    if not isinstance(value, dict):
        return value
    coerced = {}
    for key, item in value.items():
        if isinstance(item, bool):
            coerced[key] = "true" if item else "false"
        elif isinstance(item, (int, float)):
            coerced[key] = str(item)
        else:
            coerced[key] = item
    return coerced


# =============================================================================
# Batch
# =============================================================================


class EventProcessingRequest(BaseDTO):
    """One batch of records for a single user and runtime environment."""
    id: str = Field(default_factory=lambda: str(uuid4()), description="Request ID")
    environment: RuntimeEnvironment = Field(
        default=RuntimeEnvironment.UNKNOWN,
        description="Runtime environment the batch was collected in",
    )
    configuration: Dict[str, str] = Field(
        default_factory=dict,
        description="Account-level settings (setting key -> value)",
    )
    mpid: Optional[str] = Field(default=None, description="Platform user ID")
    user_identities: List[UserIdentity] = Field(default_factory=list)
    device_identities: List[DeviceIdentity] = Field(default_factory=list)
    user_attributes: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    location: Optional[Location] = None
    records: List[Record] = Field(default_factory=list)

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, value: Any) -> RuntimeEnvironment:
        return RuntimeEnvironment.parse(value)

    @field_validator("records", mode="wrap")
    @classmethod
    def parse_records(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        # Records are validated one at a time so a malformed record fails alone
        if not isinstance(value, (list, tuple)):
            return handler(value)
        return [parse_record(item) for item in value]

    @field_validator("configuration", mode="before")
    @classmethod
    def coerce_configuration(cls, value: Any) -> Any:
        return stringify_configuration(value)
