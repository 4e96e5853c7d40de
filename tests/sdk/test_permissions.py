"""Tests for permission filtering of inbound data."""

import hashlib

from conduit.permissions import apply_permissions, encode_identity_value, filter_user_identities
from conduit_common import (
    IdentityEncoding,
    IdentityType,
    Permissions,
    UserIdentity,
    UserIdentityPermission,
)


def test_encode_identity_value_normalizes_before_hashing():
    """Raw values are stripped and lower-cased before hashing."""
    expected = hashlib.sha256(b"user@example.com").hexdigest()

    assert encode_identity_value("  User@Example.com ", IdentityEncoding.SHA256) == expected
    assert encode_identity_value("Raw", IdentityEncoding.RAW) == "Raw"


def test_unpermitted_identities_are_dropped(manifest):
    """Only permitted identity types reach handlers."""
    identities = [
        UserIdentity(type=IdentityType.CUSTOMER, value="c-1"),
        UserIdentity(type=IdentityType.FACEBOOK, value="fb-1"),
    ]

    filtered = filter_user_identities(identities, manifest.permissions)

    assert [identity.type for identity in filtered] == [IdentityType.CUSTOMER]
    assert filtered[0].value == "c-1"


def test_raw_identity_hashed_to_permitted_encoding(manifest):
    """A raw email becomes sha256 because the manifest asks for sha256."""
    filtered = filter_user_identities(
        [UserIdentity(type=IdentityType.EMAIL, value="User@Example.com")],
        manifest.permissions,
    )

    assert filtered[0].encoding == IdentityEncoding.SHA256
    assert filtered[0].value == hashlib.sha256(b"user@example.com").hexdigest()


def test_identity_hashed_with_other_algorithm_is_dropped(manifest):
    """An md5 email cannot be converted to sha256 and is dropped."""
    filtered = filter_user_identities(
        [UserIdentity(type=IdentityType.EMAIL, encoding=IdentityEncoding.MD5, value="abc")],
        manifest.permissions,
    )

    assert filtered == []


def test_apply_permissions_strips_ip_and_location(batch_factory, manifest):
    """IP address and location are removed unless allowed."""
    batch = batch_factory(
        [],
        ip_address="10.0.0.1",
        location={"latitude": 1.0, "longitude": 2.0},
        user_identities=[{"type": "facebook", "value": "fb"}],
    )

    filtered = apply_permissions(batch, manifest.permissions)

    assert filtered.ip_address is None
    assert filtered.location is None
    assert filtered.user_identities == []
    # Original batch untouched
    assert batch.ip_address == "10.0.0.1"


def test_apply_permissions_keeps_allowed_fields(batch_factory):
    """Allowed IP address and location pass through."""
    permissions = Permissions(allow_access_ip_address=True, allow_access_location=True)
    batch = batch_factory([], ip_address="10.0.0.1", location={"latitude": 1.0, "longitude": 2.0})

    filtered = apply_permissions(batch, permissions)

    assert filtered.ip_address == "10.0.0.1"
    assert filtered.location.latitude == 1.0


def test_apply_permissions_filters_identity_change_records(batch_factory):
    """Identities inside identity change records are filtered too."""
    permissions = Permissions(user_identities=(UserIdentityPermission(type=IdentityType.CUSTOMER),))
    batch = batch_factory([{
        "type": "user_identity_change",
        "added": [
            {"type": "customer", "value": "c-2"},
            {"type": "twitter", "value": "@someone"},
        ],
        "removed": [{"type": "twitter", "value": "@old"}],
    }])

    record = apply_permissions(batch, permissions).records[0]

    assert [identity.value for identity in record.added] == ["c-2"]
    assert record.removed == []
