"""Tests for record and batch DTOs."""

from conduit_common import (
    CustomEvent,
    DeviceIdentityType,
    EventProcessingRequest,
    IdentityType,
    InvalidRecord,
    PushMessageReceiptEvent,
    RuntimeEnvironment,
    UnknownEvent,
    UserIdentity,
    UserIdentityChangeEvent,
)


class TestRecordUnion:
    """Tests for the tagged record union."""

    def test_known_types_parse_to_their_models(self, batch_factory, custom_event, push_receipt):
        """Known type tags select their record model."""
        batch = batch_factory([custom_event, push_receipt])

        assert isinstance(batch.records[0], CustomEvent)
        assert batch.records[0].name == "button_clicked"
        assert batch.records[0].attributes == {"color": "red"}
        assert isinstance(batch.records[1], PushMessageReceiptEvent)

    def test_unknown_type_is_kept_not_rejected(self, batch_factory, unknown_record):
        """Unknown tags parse into UnknownEvent and keep their extra fields."""
        batch = batch_factory([unknown_record])

        record = batch.records[0]
        assert isinstance(record, UnknownEvent)
        assert record.type == "hologram_projection"
        assert record.model_extra == {"intensity": 11}

    def test_record_without_type_is_unknown(self, batch_factory):
        """A record with no type tag is still accepted as unknown."""
        batch = batch_factory([{"id": "x"}])

        assert isinstance(batch.records[0], UnknownEvent)
        assert batch.records[0].type == "unknown"

    def test_unknown_fields_are_ignored_on_known_records(self, batch_factory):
        """Forward compatibility: extra fields on known records are dropped."""
        batch = batch_factory([{"type": "custom_event", "name": "n", "futureField": 1}])

        assert isinstance(batch.records[0], CustomEvent)
        assert not hasattr(batch.records[0], "futureField")

    def test_camel_case_and_snake_case_accepted(self, batch_factory):
        """Records accept camelCase (wire) and snake_case (Python) names."""
        batch = batch_factory([
            {"type": "custom_event", "name": "a", "timestampMs": 10},
            {"type": "custom_event", "name": "b", "timestamp_ms": 20},
        ])

        assert [r.timestamp_ms for r in batch.records] == [10, 20]

    def test_identity_change_event(self, batch_factory):
        """User identity change records carry typed identities."""
        batch = batch_factory([{
            "type": "user_identity_change",
            "added": [{"type": "email", "value": "a@example.com"}],
        }])

        record = batch.records[0]
        assert isinstance(record, UserIdentityChangeEvent)
        assert record.added[0].value == "a@example.com"
        assert record.removed == []

    def test_model_instances_are_accepted(self):
        """Records can be passed as model instances in Python code."""
        batch = EventProcessingRequest(records=[CustomEvent(name="n"), UnknownEvent(type="custom_event")])

        assert isinstance(batch.records[0], CustomEvent)
        assert isinstance(batch.records[1], UnknownEvent)


class TestEventProcessingRequest:
    """Tests for the batch envelope."""

    def test_defaults(self):
        """A bare batch has an ID, unknown environment and no records."""
        batch = EventProcessingRequest()

        assert batch.id
        assert batch.environment == RuntimeEnvironment.UNKNOWN
        assert batch.configuration == {}
        assert batch.records == []

    def test_unrecognised_environment_maps_to_unknown(self):
        """Environment strings the extension does not know become UNKNOWN."""
        batch = EventProcessingRequest(environment="tvos")

        assert batch.environment == RuntimeEnvironment.UNKNOWN

    def test_record_environment_override(self, batch_factory):
        """Records may override the batch environment."""
        batch = batch_factory([{"type": "custom_event", "name": "n", "environment": "ios"}])

        assert batch.records[0].environment == RuntimeEnvironment.IOS

    def test_configuration_scalars_become_strings(self):
        """Scalar configuration values are coerced to the string form the host uses."""
        batch = EventProcessingRequest(configuration={"enabled": True, "batchSize": 10, "token": "abc"})

        assert batch.configuration == {"enabled": "true", "batchSize": "10", "token": "abc"}

    def test_unknown_top_level_fields_ignored(self):
        """Unknown batch fields are ignored, not rejected."""
        batch = EventProcessingRequest.model_validate({"id": "b", "someNewField": {"a": 1}})

        assert batch.id == "b"


class TestMalformedRecords:
    """Records that do not fit their declared type."""

    def test_malformed_known_record_becomes_invalid_record(self, batch_factory, custom_event):
        """A known record missing a required field is kept as a placeholder."""
        batch = batch_factory([custom_event, {"id": "bad", "type": "custom_event"}])

        assert isinstance(batch.records[0], CustomEvent)
        record = batch.records[1]
        assert isinstance(record, InvalidRecord)
        assert record.id == "bad"
        assert record.type == "custom_event"
        assert record.error == "ValidationError: name: Field required"

    def test_malformed_record_without_id_gets_one(self, batch_factory):
        batch = batch_factory([{"type": "screen_view"}])

        assert isinstance(batch.records[0], InvalidRecord)
        assert batch.records[0].id


class TestIdentities:
    """Tests for identity parsing."""

    def test_unknown_user_identity_type_maps_to_other(self, batch_factory):
        batch = batch_factory([], user_identities=[{"type": "mobile_number", "value": "555"}])

        assert batch.user_identities[0].type == IdentityType.OTHER
        assert batch.user_identities[0].value == "555"

    def test_unknown_device_identity_type_maps_to_other(self, batch_factory):
        batch = batch_factory([], device_identities=[{"type": "roku_id", "value": "r-1"}])

        assert batch.device_identities[0].type == DeviceIdentityType.OTHER

    def test_identity_type_is_case_insensitive(self):
        assert UserIdentity(type="EMAIL", value="a@example.com").type == IdentityType.EMAIL
