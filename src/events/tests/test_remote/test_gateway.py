"""Tests for the remote event gateway.

Tests cover:
- Request-scoped memoization of event and form reads
- Error collapsing for eager reads
- Validation, registration, update and cancellation semantics
- Check-in verification and confirmation
- Injection of the remote contact ID into every call
"""

import typing as t
from unittest.mock import MagicMock

import pytest

from common.testing import FakeRemoteClient
from events.exceptions import (
    CancellationError,
    CheckinError,
    CheckinVerificationError,
    ErrorOrigin,
    FormRetrievalError,
    NotFoundError,
    RegistrationError,
    RegistrationUpdateError,
    ValidationCallError,
)
from events.service.gateway import GatewayContext, RegistrationContext, RemoteEventGateway, as_mapping

EVENT_REPLY = {
    "id": 5,
    "title": "Summer Camp",
    "can_register": 1,
    "can_edit_registration": 0,
    "can_cancel_registration": "1",
    "default_profile": "Standard1",
    "location": "Berlin",
}


class TestGetEvent:
    def test_returns_event_with_extra_fields(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        """Declared fields are coerced, undeclared public fields are kept."""
        remote_client.reply("RemoteEvent", "getsingle", EVENT_REPLY)

        event = gateway.get_event(gateway_context, 5)

        assert event.id == 5
        assert event.can_register is True
        assert event.can_edit_registration is False
        assert event.can_cancel_registration is True
        assert event.model_dump()["location"] == "Berlin"

    def test_empty_flags_are_false(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply(
            "RemoteEvent",
            "getsingle",
            {**EVENT_REPLY, "can_register": "", "can_cancel_registration": None, "is_registered": "0"},
        )

        event = gateway.get_event(gateway_context, 5)

        assert event.can_register is False
        assert event.can_cancel_registration is False
        assert event.is_registered is False

    def test_reads_are_memoized_per_context(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        """The same event is only fetched once for the same parameters."""
        remote_client.reply("RemoteEvent", "getsingle", EVENT_REPLY)

        first = gateway.get_event(gateway_context, 5)
        second = gateway.get_event(gateway_context, 5)

        assert first == second
        assert len(remote_client.calls) == 1

    def test_different_parameters_are_not_shared(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteEvent", "getsingle", EVENT_REPLY)

        gateway.get_event(gateway_context, 5)
        gateway.get_event(gateway_context, 6)
        gateway.get_event(gateway_context, None, "some-token")

        assert len(remote_client.calls) == 3

    def test_cache_does_not_outlive_context(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient
    ) -> None:
        """A new request (context) fetches again."""
        remote_client.reply("RemoteEvent", "getsingle", EVENT_REPLY)

        gateway.get_event(GatewayContext(remote_contact_id="42"), 5)
        gateway.get_event(GatewayContext(remote_contact_id="42"), 5)

        assert len(remote_client.calls) == 2

    def test_remote_error_uses_remote_message(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteEvent", "getsingle", {"is_error": 1, "error_message": "Event is not public."})

        with pytest.raises(NotFoundError) as exc_info:
            gateway.get_event(gateway_context, 5)

        assert exc_info.value.message == "Event is not public."
        assert exc_info.value.origin == ErrorOrigin.REMOTE
        assert exc_info.value.status_code == 404

    def test_failed_reads_are_not_memoized(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteEvent", "getsingle", {"is_error": 1})

        for _ in range(2):
            with pytest.raises(NotFoundError):
                gateway.get_event(gateway_context, 5)

        assert len(remote_client.calls) == 2

    def test_unexpected_failure_is_collapsed(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        """Anything going wrong while talking to the remote system becomes a NotFoundError."""
        remote_client.execute_call = MagicMock(side_effect=RuntimeError("boom"))  # type: ignore[method-assign]

        with pytest.raises(NotFoundError) as exc_info:
            gateway.get_event(gateway_context, 5)

        assert exc_info.value.message == "Could not retrieve remote event."
        assert exc_info.value.origin == ErrorOrigin.FAULT

    def test_malformed_event_is_collapsed(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteEvent", "getsingle", {"id": "not-a-number"})

        with pytest.raises(NotFoundError) as exc_info:
            gateway.get_event(gateway_context, 5)

        assert exc_info.value.origin == ErrorOrigin.FAULT


class TestGetForm:
    def test_returns_full_reply_and_memoizes(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        reply = {"is_error": 0, "values": {"first_name": {"type": "Text", "required": 1}}}
        remote_client.reply("RemoteParticipant", "get_form", reply)

        form = gateway.get_form(gateway_context, 5, "Standard1")
        gateway.get_form(gateway_context, 5, "Standard1")

        assert form == reply
        assert len(remote_client.calls) == 1
        assert remote_client.calls[0].params["context"] == "create"

    def test_profile_and_context_are_part_of_the_key(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "get_form", {"is_error": 0, "values": {}})

        gateway.get_form(gateway_context, 5, "Standard1")
        gateway.get_form(gateway_context, 5, "Standard2")
        gateway.get_form(gateway_context, 5, "Standard1", context=RegistrationContext.UPDATE)

        assert len(remote_client.calls) == 3

    def test_failure_raises(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "get_form", {"is_error": 1, "error_message": "Unknown profile"})

        with pytest.raises(FormRetrievalError) as exc_info:
            gateway.get_form(gateway_context, 5, "Nope")

        assert exc_info.value.message == "Retrieving form failed."
        assert exc_info.value.status_code == 502

    def test_invalid_context_is_rejected(self, gateway: RemoteEventGateway, gateway_context: GatewayContext) -> None:
        with pytest.raises(ValueError):
            gateway.get_form(gateway_context, 5, "Standard1", context="delete")


class TestValidateRegistration:
    def test_valid_submission_returns_no_errors(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "validate", {"is_error": 0, "values": []})

        errors = gateway.validate_registration(gateway_context, 5, "Standard1", params={"first_name": "Ada"})

        assert errors == {}
        sent = remote_client.calls[0].params
        assert sent["first_name"] == "Ada"
        assert sent["event_id"] == 5
        assert sent["profile"] == "Standard1"
        assert sent["context"] == "create"

    def test_field_errors_are_returned_not_raised(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        """A failed call with field errors is a validation result, not an error."""
        remote_client.reply(
            "RemoteParticipant",
            "validate",
            {"is_error": 1, "values": {"email": "Please enter a valid e-mail address."}},
        )

        errors = gateway.validate_registration(gateway_context, 5, "Standard1")

        assert errors == {"email": "Please enter a valid e-mail address."}

    def test_failure_without_errors_raises(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "validate", {"is_error": 1, "error_message": "Internal"})

        with pytest.raises(ValidationCallError):
            gateway.validate_registration(gateway_context, 5, "Standard1")

    def test_validation_is_never_memoized(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "validate", {"is_error": 0, "values": []})

        gateway.validate_registration(gateway_context, 5, "Standard1")
        gateway.validate_registration(gateway_context, 5, "Standard1")

        assert len(remote_client.calls) == 2


class TestSubmissions:
    def test_create_returns_full_reply_and_forwards_messages(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        reply = {
            "is_error": 0,
            "values": {"participant_id": 17},
            "status_messages": [{"message": "You are on the waiting list.", "severity": "warning"}],
        }
        remote_client.reply("RemoteParticipant", "create", reply)

        result = gateway.create_registration(
            gateway_context, 5, "Standard1", params={"first_name": "Ada"}, emit_messages=True
        )

        assert result == reply
        assert [(m.message, m.severity) for m in gateway_context.messages] == [
            ("You are on the waiting list.", "warning")
        ]

    def test_plain_string_message_is_forwarded_once(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        reply = {"is_error": 0, "id": 17, "values": {"participant_id": 17}, "status_messages": ["Registered!"]}
        remote_client.reply("RemoteParticipant", "create", reply)

        result = gateway.create_registration(gateway_context, 42, "standard", params={"name": "A"}, emit_messages=True)

        assert result == reply
        assert [m.message for m in gateway_context.messages] == ["Registered!"]
        assert [m.severity for m in gateway_context.messages] == ["status"]
        call = remote_client.calls_to("RemoteParticipant", "create")[0]
        assert call.params["name"] == "A"
        assert call.params["event_id"] == 42
        assert call.params["profile"] == "standard"
        assert call.params["remote_contact_id"] == "42"

    def test_messages_are_not_forwarded_unless_asked(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "create", {"is_error": 0, "status_messages": ["Thanks!"]})

        gateway.create_registration(gateway_context, 5, "Standard1")

        assert len(gateway_context.messages) == 0

    def test_create_failure_raises_after_forwarding_messages(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply(
            "RemoteParticipant", "create", {"is_error": 1, "status_messages": ["The event is fully booked."]}
        )

        with pytest.raises(RegistrationError) as exc_info:
            gateway.create_registration(gateway_context, 5, "Standard1", emit_messages=True)

        assert exc_info.value.message == "The event registration failed."
        assert [m.message for m in gateway_context.messages] == ["The event is fully booked."]

    def test_update_failure_raises(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "update", {"is_error": 1})

        with pytest.raises(RegistrationUpdateError):
            gateway.update_registration(gateway_context, 5, "Standard1")

    def test_update_returns_full_reply(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "update", {"is_error": 0, "values": {"participant_id": 17}})

        result = gateway.update_registration(gateway_context, None, "Standard1", remote_token="tok")

        assert result["values"] == {"participant_id": 17}
        assert remote_client.calls[0].params["token"] == "tok"

    def test_cancel_returns_values_only(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "cancel", {"is_error": 0, "values": {"status_id": 4}})

        result = gateway.cancel_registration(gateway_context, 5)

        assert result == {"status_id": 4}

    def test_cancel_failure_raises(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("RemoteParticipant", "cancel", {"is_error": 1, "error_message": "Too late."})

        with pytest.raises(CancellationError):
            gateway.cancel_registration(gateway_context, 5)


class TestCheckin:
    def test_verify_returns_fields_and_options(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply(
            "EventCheckin",
            "verify",
            {"is_error": 0, "values": {"display_name": "Ada"}, "checkin_options": {"2": "Attended"}},
        )

        info = gateway.get_checkin_info(gateway_context, "checkin-token")

        assert info == {"fields": {"display_name": "Ada"}, "checkin_options": {"2": "Attended"}}

    def test_verify_remote_error_keeps_message(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("EventCheckin", "verify", {"is_error": 1, "error_message": "Already checked in."})

        with pytest.raises(CheckinVerificationError) as exc_info:
            gateway.get_checkin_info(gateway_context, "checkin-token")

        assert exc_info.value.message == "Already checked in."
        assert exc_info.value.origin == ErrorOrigin.REMOTE

    def test_verify_fault_is_collapsed(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.execute_call = MagicMock(side_effect=KeyError("values"))  # type: ignore[method-assign]

        with pytest.raises(CheckinVerificationError) as exc_info:
            gateway.get_checkin_info(gateway_context, "checkin-token")

        assert exc_info.value.origin == ErrorOrigin.FAULT
        assert exc_info.value.message == "The event checkin verification failed."

    def test_confirm(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("EventCheckin", "confirm", {"is_error": 0})

        assert gateway.checkin_participant(gateway_context, "checkin-token", 2) is True
        assert remote_client.calls[0].params["status_id"] == 2

    def test_confirm_failure_raises(
        self, gateway: RemoteEventGateway, remote_client: FakeRemoteClient, gateway_context: GatewayContext
    ) -> None:
        remote_client.reply("EventCheckin", "confirm", {"is_error": 1})

        with pytest.raises(CheckinError):
            gateway.checkin_participant(gateway_context, "checkin-token", 2)


OPERATIONS: dict[str, t.Callable[[RemoteEventGateway, GatewayContext], t.Any]] = {
    "get_event": lambda g, ctx: g.get_event(ctx, 5),
    "get_form": lambda g, ctx: g.get_form(ctx, 5, "Standard1"),
    "validate": lambda g, ctx: g.validate_registration(ctx, 5, "Standard1", params={"remote_contact_id": "999"}),
    "create": lambda g, ctx: g.create_registration(ctx, 5, "Standard1", params={"remote_contact_id": "999"}),
    "update": lambda g, ctx: g.update_registration(ctx, 5, "Standard1", params={"remote_contact_id": "999"}),
    "cancel": lambda g, ctx: g.cancel_registration(ctx, 5),
    "verify": lambda g, ctx: g.get_checkin_info(ctx, "checkin-token"),
    "confirm": lambda g, ctx: g.checkin_participant(ctx, "checkin-token", 2),
}


@pytest.mark.parametrize("operation", OPERATIONS.values(), ids=list(OPERATIONS))
def test_remote_contact_id_is_always_injected(
    operation: t.Callable[[RemoteEventGateway, GatewayContext], t.Any],
    gateway: RemoteEventGateway,
    remote_client: FakeRemoteClient,
) -> None:
    """Every remote call acts as the context's contact, whatever the submitted values say."""
    for entity, action in [
        ("RemoteEvent", "getsingle"),
        ("RemoteParticipant", "get_form"),
        ("RemoteParticipant", "validate"),
        ("RemoteParticipant", "create"),
        ("RemoteParticipant", "update"),
        ("RemoteParticipant", "cancel"),
        ("EventCheckin", "verify"),
        ("EventCheckin", "confirm"),
    ]:
        remote_client.reply(entity, action, {"is_error": 0, "id": 5, "values": []})

    operation(gateway, GatewayContext(remote_contact_id="42"))

    assert len(remote_client.calls) == 1
    params = remote_client.calls[0].params
    assert params["remote_contact_id"] == "42"
    assert list(params)[-1] == "remote_contact_id"


class TestAsMapping:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ({"a": 1}, {"a": 1}),
            ([], {}),
            (["x", "y"], {"0": "x", "1": "y"}),
            (None, {}),
            ("", {}),
        ],
    )
    def test_normalizes_values(self, value: t.Any, expected: dict[str, t.Any]) -> None:
        assert as_mapping(value) == expected
