"""
Apply a manifest's permissions to inbound data.

Handlers only ever see identities the extension declared, in the encoding it
declared. Raw identity values are normalized (stripped, lower-cased) and
hashed when the permission asks for a hashed encoding; identities that are
already hashed with a different algorithm cannot be converted and are dropped.
"""
import hashlib
import logging
from typing import List, Optional, Sequence

from conduit_common import (
    DeviceIdentity,
    EventProcessingRequest,
    IdentityEncoding,
    Permissions,
    UserIdentity,
    UserProfile,
)

logger = logging.getLogger(__name__)

_HASHERS = {
    IdentityEncoding.MD5: hashlib.md5,
    IdentityEncoding.SHA1: hashlib.sha1,
    IdentityEncoding.SHA256: hashlib.sha256,
}


def encode_identity_value(value: str, encoding: IdentityEncoding) -> str:
    """Encode a raw identity value with the given encoding."""
    if encoding == IdentityEncoding.RAW:
        return value
    normalized = value.strip().lower().encode("utf-8")
    return _HASHERS[encoding](normalized).hexdigest()


def _convert(identity, target: IdentityEncoding):
    if identity.encoding == target:
        return identity
    if identity.encoding != IdentityEncoding.RAW:
        return None
    return identity.model_copy(update={
        "encoding": target,
        "value": encode_identity_value(identity.value, target),
    })


def filter_user_identities(
    identities: Sequence[UserIdentity],
    permissions: Permissions,
) -> List[UserIdentity]:
    """Keep only permitted user identities, re-encoded as the permission requires."""
    permitted = []
    for identity in identities:
        permission = permissions.user_identity_permission(identity.type)
        if permission is None:
            continue
        converted = _convert(identity, permission.encoding)
        if converted is None:
            logger.debug(f"Dropping {identity.type.value} identity: cannot convert {identity.encoding.value}")
            continue
        permitted.append(converted)
    return permitted


def filter_device_identities(
    identities: Sequence[DeviceIdentity],
    permissions: Permissions,
) -> List[DeviceIdentity]:
    """Keep only permitted device identities, re-encoded as the permission requires."""
    permitted = []
    for identity in identities:
        permission = permissions.device_identity_permission(identity.type)
        if permission is None:
            continue
        converted = _convert(identity, permission.encoding)
        if converted is not None:
            permitted.append(converted)
    return permitted


def apply_permissions(
    batch: EventProcessingRequest,
    permissions: Permissions,
) -> EventProcessingRequest:
    """
    Return a copy of the batch stripped of everything the extension may not see.

    Covers batch-level identities, identities inside user identity change
    records, the IP address and the location.
    """
    records = []
    for record in batch.records:
        if record.type == "user_identity_change":
            record = record.model_copy(update={
                "added": filter_user_identities(record.added, permissions),
                "removed": filter_user_identities(record.removed, permissions),
            })
        records.append(record)

    ip_address: Optional[str] = batch.ip_address if permissions.allow_access_ip_address else None
    location = batch.location if permissions.allow_access_location else None

    return batch.model_copy(update={
        "user_identities": filter_user_identities(batch.user_identities, permissions),
        "device_identities": filter_device_identities(batch.device_identities, permissions),
        "ip_address": ip_address,
        "location": location,
        "records": records,
    })


def apply_profile_permissions(profile: UserProfile, permissions: Permissions) -> UserProfile:
    """Return a copy of an audience user profile with only permitted identities."""
    return profile.model_copy(update={
        "user_identities": filter_user_identities(profile.user_identities, permissions),
        "device_identities": filter_device_identities(profile.device_identities, permissions),
    })
