"""Tests for the bundled sample extension."""

import pytest

from conduit import BatchContext, RegistrationService
from conduit.sample import SUPPORTED_EVENT_TYPES, build_manifest, extension, resolve_user
from conduit_common import (
    BatchStatus,
    EventProcessingRequest,
    EventType,
    IdentityType,
    OutcomeStatus,
    RuntimeEnvironment,
)


class TestSampleManifest:
    """The sample manifest declares what its handlers consume."""

    def test_identity(self):
        manifest = build_manifest()

        assert manifest.name == "LaunchDarkly"
        assert manifest.version == "1.0"

    def test_event_processing_block(self):
        manifest = build_manifest()

        assert manifest.supported_event_types == SUPPORTED_EVENT_TYPES
        assert EventType.SESSION_START not in manifest.supported_event_types
        assert manifest.supported_environments == (RuntimeEnvironment.ANDROID, RuntimeEnvironment.IOS)
        token = manifest.account_settings[0]
        assert token.key == "serviceToken"
        assert token.required and token.confidential

    def test_permissions(self):
        permissions = build_manifest().permissions

        assert permissions.allow_access_ip_address
        assert permissions.allow_access_location
        assert [p.type for p in permissions.user_identities] == [IdentityType.EMAIL, IdentityType.CUSTOMER]

    def test_audience_block(self):
        manifest = build_manifest()

        assert manifest.audience_account_settings == manifest.account_settings
        assert [s.key for s in manifest.audience_settings] == ["clientSideID"]

    def test_every_declared_type_has_a_handler(self):
        """The sample registers a handler for each declared event type."""
        for event_type in SUPPORTED_EVENT_TYPES:
            assert event_type in extension.handlers

    def test_registration_is_repeatable(self):
        assert RegistrationService.document(build_manifest()) == RegistrationService.document(build_manifest())


class TestSampleProcessing:
    """Batches processed by the sample extension."""

    def batch(self, records, **overrides) -> EventProcessingRequest:
        data = {
            "id": "sample-1",
            "environment": "ios",
            "mpid": "mp-1",
            "configuration": {"serviceToken": "abc"},
            "userIdentities": [
                {"type": "email", "value": "a@example.com"},
                {"type": "customer", "value": "cust-9"},
            ],
            "records": records,
        }
        data.update(overrides)
        return EventProcessingRequest.model_validate(data)

    @pytest.mark.asyncio
    async def test_mixed_batch(self):
        """Declared types are processed; session events are not declared and are skipped."""
        response = await extension.process_event_processing_request(self.batch([
            {"type": "custom_event", "name": "checkout"},
            {"type": "push_message_receipt", "payload": "{}"},
            {"type": "session_start"},
        ]))

        assert response.status == BatchStatus.COMPLETE
        assert [o.status for o in response.outcomes] == [
            OutcomeStatus.PROCESSED,
            OutcomeStatus.PROCESSED,
            OutcomeStatus.SKIPPED,
        ]

    @pytest.mark.asyncio
    async def test_missing_service_token(self):
        response = await extension.process_event_processing_request(self.batch([], configuration={}))

        assert response.is_rejected
        assert response.error.message == "MissingRequiredSetting: serviceToken"

    @pytest.mark.asyncio
    async def test_outbox_uses_resolved_user(self):
        """The setup hook resolves the user once and handlers tag payloads with it."""
        batch = self.batch([
            {"id": "e1", "type": "custom_event", "name": "checkout", "attributes": {"total": "10"}},
            {"id": "e2", "type": "user_attribute_change", "key": "plan", "value": "pro"},
        ])
        context = BatchContext(request=batch, manifest=extension.manifest)
        dispatcher = extension.batch_processor().dispatcher

        await resolve_user(context)
        for index, record in enumerate(batch.records):
            await dispatcher.dispatch(record, context, index=index)

        outbox = context.state["outbox"]
        assert [item["kind"] for item in outbox] == ["custom", "identify"]
        assert all(item["user"] == "cust-9" for item in outbox)
        assert outbox[0]["data"] == {"key": "checkout", "attributes": {"total": "10"}}
        assert outbox[1]["data"] == {"custom": {"plan": "pro"}}

    @pytest.mark.asyncio
    async def test_empty_identity_change_is_skipped(self):
        """Identity changes with nothing permitted left are skipped by the handler."""
        response = await extension.process_event_processing_request(self.batch([
            {"type": "user_identity_change", "added": [{"type": "facebook", "value": "fb"}]},
        ]))

        assert response.outcomes[0].status == OutcomeStatus.SKIPPED
        assert response.outcomes[0].reason == "no permitted identity changes"
