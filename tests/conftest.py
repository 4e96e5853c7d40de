"""
Shared fixtures for Conduit tests.
"""
from typing import Any, Dict, List

import pytest

from conduit_common import (
    AudienceProcessingRegistration,
    EventProcessingRegistration,
    EventProcessingRequest,
    EventType,
    IdentityEncoding,
    IdentityType,
    Manifest,
    Permissions,
    RuntimeEnvironment,
    Setting,
    SettingKind,
    UserIdentityPermission,
)


def build_test_manifest() -> Manifest:
    """A small manifest with one required confidential setting and a typed one."""
    account_settings = (
        Setting(key="serviceToken", label="Service token", required=True, confidential=True),
        Setting(key="batchSize", label="Batch size", kind=SettingKind.INTEGER),
    )
    return Manifest(
        name="TestExtension",
        version="1.0",
        description="Extension used in tests",
        permissions=Permissions(
            user_identities=(
                UserIdentityPermission(type=IdentityType.EMAIL, encoding=IdentityEncoding.SHA256),
                UserIdentityPermission(type=IdentityType.CUSTOMER),
            ),
        ),
        event_processing=EventProcessingRegistration(
            account_settings=account_settings,
            supported_event_types=(EventType.CUSTOM_EVENT, EventType.PUSH_MESSAGE_RECEIPT),
            supported_environments=(RuntimeEnvironment.ANDROID, RuntimeEnvironment.IOS),
        ),
        audience_processing=AudienceProcessingRegistration(
            account_settings=account_settings,
            audience_connection_settings=(
                Setting(key="listId", label="List ID", required=True),
            ),
        ),
    )


@pytest.fixture
def manifest() -> Manifest:
    return build_test_manifest()


def make_batch(records: List[Dict[str, Any]], **overrides: Any) -> EventProcessingRequest:
    """Build a batch from JSON-like data, as the host would send it."""
    data: Dict[str, Any] = {
        "id": "batch-1",
        "environment": "android",
        "configuration": {"serviceToken": "abc"},
        "records": records,
    }
    data.update(overrides)
    return EventProcessingRequest.model_validate(data)


@pytest.fixture
def custom_event() -> Dict[str, Any]:
    return {"id": "evt-1", "type": "custom_event", "name": "button_clicked", "attributes": {"color": "red"}}


@pytest.fixture
def push_receipt() -> Dict[str, Any]:
    return {"id": "evt-2", "type": "push_message_receipt", "payload": "{\"alert\": \"hi\"}"}


@pytest.fixture
def unknown_record() -> Dict[str, Any]:
    return {"id": "evt-3", "type": "hologram_projection", "intensity": 11}


@pytest.fixture
def batch_factory():
    return make_batch


@pytest.fixture
def manifest_factory():
    return build_test_manifest
