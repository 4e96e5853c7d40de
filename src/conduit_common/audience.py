"""
Audience processing DTOs.

Audience (segment) integrations are configured separately from event
processing. The host sends two kinds of requests:

- membership changes: which users joined or left which audiences
- subscription changes: an audience was connected to, updated on, or removed
  from the extension, together with its segment-level settings
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import Field, field_validator

from .events import DeviceIdentity, UserIdentity, stringify_configuration
from .models import BaseDTO
from .outcomes import BatchError, BatchResult, BatchStatus


class AudienceAction(str, Enum):
    ADD = "add"
    DELETE = "delete"


class AudienceSubscriptionAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AudienceMembership(BaseDTO):
    """A user's membership change for one audience."""
    audience_id: int
    audience_name: Optional[str] = None
    action: AudienceAction


class UserProfile(BaseDTO):
    """One user and the audience membership changes that apply to them."""
    mpid: str
    user_identities: List[UserIdentity] = Field(default_factory=list)
    device_identities: List[DeviceIdentity] = Field(default_factory=list)
    audiences: List[AudienceMembership] = Field(default_factory=list)


class AudienceMembershipChangeRequest(BaseDTO):
    """Batch of user profiles whose audience memberships changed."""
    id: str = Field(default_factory=lambda: str(uuid4()), description="Request ID")
    configuration: Dict[str, str] = Field(default_factory=dict, description="Account-level settings")
    user_profiles: List[UserProfile] = Field(default_factory=list)

    @field_validator("configuration", mode="before")
    @classmethod
    def coerce_configuration(cls, value: Any) -> Any:
        return stringify_configuration(value)


class AudienceMembershipChangeResponse(BatchResult):
    """One outcome per user profile, in request order."""


class AudienceSubscriptionRequest(BaseDTO):
    """An audience was created, updated or deleted for this extension."""
    id: str = Field(default_factory=lambda: str(uuid4()), description="Request ID")
    audience_id: int
    audience_name: Optional[str] = None
    action: AudienceSubscriptionAction = AudienceSubscriptionAction.CREATE
    configuration: Dict[str, str] = Field(default_factory=dict, description="Account-level settings")
    audience_connection_settings: Dict[str, str] = Field(
        default_factory=dict,
        description="Segment-level settings for this audience",
    )

    @field_validator("configuration", "audience_connection_settings", mode="before")
    @classmethod
    def coerce_settings(cls, value: Any) -> Any:
        return stringify_configuration(value)


class AudienceSubscriptionResponse(BaseDTO):
    """Result of a subscription change; a single error when it was rejected."""
    request_id: str
    status: BatchStatus
    error: Optional[BatchError] = None
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_rejected(self) -> bool:
        return self.status == BatchStatus.REJECTED
