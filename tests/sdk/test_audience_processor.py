"""Tests for audience membership and subscription processing."""

import pytest

from conduit import AudienceProcessor, SkipRecord
from conduit_common import (
    AudienceMembershipChangeRequest,
    AudienceSubscriptionAction,
    AudienceSubscriptionRequest,
    BatchStatus,
    IdentityType,
    OutcomeStatus,
)


def membership_request(**overrides) -> AudienceMembershipChangeRequest:
    data = {
        "id": "aud-1",
        "configuration": {"serviceToken": "abc"},
        "userProfiles": [
            {
                "mpid": "u1",
                "userIdentities": [
                    {"type": "customer", "value": "c-1"},
                    {"type": "twitter", "value": "@u1"},
                ],
                "audiences": [{"audienceId": 10, "audienceName": "Churn risk", "action": "add"}],
            },
            {
                "mpid": "u2",
                "audiences": [{"audienceId": 10, "action": "delete"}],
            },
        ],
    }
    data.update(overrides)
    return AudienceMembershipChangeRequest.model_validate(data)


def subscription_request(**overrides) -> AudienceSubscriptionRequest:
    data = {
        "id": "sub-1",
        "audienceId": 10,
        "audienceName": "Churn risk",
        "configuration": {"serviceToken": "abc"},
        "audienceConnectionSettings": {"listId": "L1"},
    }
    data.update(overrides)
    return AudienceSubscriptionRequest.model_validate(data)


class TestMembershipChange:
    """Tests for process_membership_change()."""

    @pytest.mark.asyncio
    async def test_one_outcome_per_profile(self, manifest):
        """Every profile is handed to the handler in order."""
        seen = []

        async def handler(profile, request):
            seen.append((profile.mpid, [m.action.value for m in profile.audiences]))

        processor = AudienceProcessor(manifest, membership_handler=handler)

        response = await processor.process_membership_change(membership_request())

        assert response.status == BatchStatus.COMPLETE
        assert [o.record_id for o in response.outcomes] == ["u1", "u2"]
        assert all(o.status == OutcomeStatus.PROCESSED for o in response.outcomes)
        assert all(o.record_type == "user_profile" for o in response.outcomes)
        assert seen == [("u1", ["add"]), ("u2", ["delete"])]

    @pytest.mark.asyncio
    async def test_profiles_are_permission_filtered(self, manifest):
        """Handlers only see permitted identities."""
        identities = []

        async def handler(profile, request):
            identities.extend(identity.type for identity in profile.user_identities)

        processor = AudienceProcessor(manifest, membership_handler=handler)

        await processor.process_membership_change(membership_request())

        assert identities == [IdentityType.CUSTOMER]

    @pytest.mark.asyncio
    async def test_missing_setting_rejects(self, manifest):
        """Account settings are validated before any profile is processed."""
        calls = []

        async def handler(profile, request):
            calls.append(profile)

        processor = AudienceProcessor(manifest, membership_handler=handler)

        response = await processor.process_membership_change(membership_request(configuration={}))

        assert response.status == BatchStatus.REJECTED
        assert response.error.message == "MissingRequiredSetting: serviceToken"
        assert response.outcomes == []
        assert calls == []

    @pytest.mark.asyncio
    async def test_profile_failure_is_isolated(self, manifest):
        """A failing profile does not stop the next one."""
        async def handler(profile, request):
            if profile.mpid == "u1":
                raise KeyError("segment")
            if not profile.user_identities:
                raise SkipRecord("no identities")

        processor = AudienceProcessor(manifest, membership_handler=handler)

        response = await processor.process_membership_change(membership_request())

        assert [o.status for o in response.outcomes] == [OutcomeStatus.FAILED, OutcomeStatus.SKIPPED]
        assert response.outcomes[0].error.startswith("KeyError")
        assert response.outcomes[1].reason == "no identities"

    @pytest.mark.asyncio
    async def test_no_handler_skips_profiles(self, manifest):
        """Without a membership handler every profile is skipped."""
        processor = AudienceProcessor(manifest)

        response = await processor.process_membership_change(membership_request())

        assert [o.reason for o in response.outcomes] == ["unsupported type", "unsupported type"]


class TestSubscription:
    """Tests for process_subscription()."""

    @pytest.mark.asyncio
    async def test_accepted(self, manifest):
        """A valid subscription reaches the handler and completes."""
        received = []

        async def handler(request, manifest):
            received.append((request.audience_id, request.action))

        processor = AudienceProcessor(manifest, subscription_handler=handler)

        response = await processor.process_subscription(subscription_request())

        assert response.status == BatchStatus.COMPLETE
        assert response.error is None
        assert received == [(10, AudienceSubscriptionAction.CREATE)]

    @pytest.mark.asyncio
    async def test_missing_connection_setting_rejects(self, manifest):
        """Segment-level settings are validated too."""
        processor = AudienceProcessor(manifest)

        response = await processor.process_subscription(subscription_request(audienceConnectionSettings={}))

        assert response.is_rejected
        assert response.error.message == "MissingRequiredSetting: listId"

    @pytest.mark.asyncio
    async def test_handler_failure_rejects(self, manifest):
        """A failing subscription handler rejects the request."""
        async def handler(request, manifest):
            raise RuntimeError("list not found")

        processor = AudienceProcessor(manifest, subscription_handler=handler)

        response = await processor.process_subscription(subscription_request())

        assert response.is_rejected
        assert response.error.code == "HandlerFailed"
        assert response.error.message == "HandlerFailed: RuntimeError: list not found"

    @pytest.mark.asyncio
    async def test_unknown_settings_warn(self, manifest):
        """Undeclared account and connection keys are merged into warnings."""
        processor = AudienceProcessor(manifest)

        response = await processor.process_subscription(subscription_request(
            configuration={"serviceToken": "abc", "extraA": "1"},
            audienceConnectionSettings={"listId": "L1", "extraB": "2"},
        ))

        assert response.status == BatchStatus.COMPLETE
        assert response.warnings == ["UnknownSetting: extraA", "UnknownSetting: extraB"]
