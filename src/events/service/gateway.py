"""The remote event gateway.

Single entry point for everything the public event pages need from CiviCRM:
event details, registration forms, validation, registration, update,
cancellation and check-in. Each operation

- receives an explicit `GatewayContext` (the remote contact the request acts
  as, the request's call cache and message channel),
- builds the remote parameters and injects ``remote_contact_id`` last, so it
  can never be supplied by a client,
- issues exactly one remote call (event and form reads at most one per
  distinct parameter signature per request),
- interprets the reply and either returns a result or raises one of the
  errors in `events.exceptions`.

Two error-handling shapes are used on purpose. Reads performed eagerly when a
page loads (`get_event`, `get_checkin_info`) collapse every failure, expected
or not, into one displayable error. Validation and mutations expose the
remote status directly, because forms need to tell "the remote side rejected
these values" apart from "the call broke".
"""

import typing as t
from dataclasses import dataclass, field
from enum import StrEnum
from functools import lru_cache

import structlog
from django.conf import settings
from pydantic import BaseModel, ConfigDict, field_validator

from common.messages import MessageChannel
from events.exceptions import (
    CancellationError,
    CheckinError,
    CheckinVerificationError,
    ErrorOrigin,
    FormRetrievalError,
    NotFoundError,
    RegistrationError,
    RegistrationUpdateError,
    RemoteEventError,
    ValidationCallError,
)
from events.service.call_cache import CacheKey, CallCache
from events.service.remote_client import Call, CiviRestClient, RemoteCallClient

logger = structlog.get_logger(__name__)

REMOTE_CONTACT_ID = "remote_contact_id"


class RegistrationContext(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    CANCEL = "cancel"


class RemoteEvent(BaseModel):
    """A remote event as returned by ``RemoteEvent.getsingle``.

    Only the fields this application acts upon are declared; all other
    public fields are kept as extra attributes.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    title: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    can_register: bool = False
    can_edit_registration: bool = False
    can_cancel_registration: bool = False
    is_registered: bool = False
    default_profile: str | None = None
    default_update_profile: str | None = None

    @field_validator(
        "can_register", "can_edit_registration", "can_cancel_registration", "is_registered", mode="before"
    )
    @classmethod
    def remote_flag(cls, value: t.Any) -> t.Any:
        """APIv3 sends unset flags as ``""`` or ``null``."""
        if value is None or value == "":
            return False
        return value


class CheckinInfo(t.TypedDict):
    fields: dict[str, t.Any]
    checkin_options: dict[str, t.Any]


@dataclass
class GatewayContext:
    """Everything a gateway operation needs to know about the current request."""

    remote_contact_id: str
    cache: CallCache = field(default_factory=CallCache)
    messages: MessageChannel = field(default_factory=MessageChannel)


def as_mapping(value: t.Any) -> dict[str, t.Any]:
    """Normalize an APIv3 ``values`` payload, which is ``[]`` when empty."""
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(index): item for index, item in enumerate(value)}
    return {}


class RemoteEventGateway:
    """Translates event actions into calls against the remote event system."""

    def __init__(self, client: RemoteCallClient, connector: str) -> None:
        """Initialize the gateway.

        Args:
            client: The client executing remote calls.
            connector: Name of the connector profile to call.
        """
        self.client = client
        self.connector = connector

    # --- helpers ---

    def _with_identity(self, ctx: GatewayContext, params: dict[str, t.Any]) -> dict[str, t.Any]:
        return {**params, REMOTE_CONTACT_ID: ctx.remote_contact_id}

    def _call(self, entity: str, action: str, params: dict[str, t.Any]) -> Call:
        logger.debug("remote_call", entity=entity, action=action)
        call = self.client.execute_call(self.connector, entity, action, params, {})
        if not call.is_done:
            logger.warning(
                "remote_call_failed",
                entity=entity,
                action=action,
                error_message=call.reply.get("error_message"),
            )
        return call

    def _forward_messages(self, ctx: GatewayContext, reply: dict[str, t.Any], emit_messages: bool) -> None:
        if emit_messages and reply.get("status_messages"):
            ctx.messages.extend(reply["status_messages"])

    # --- reads ---

    def get_event(self, ctx: GatewayContext, event_id: int | None, remote_token: str | None = None) -> RemoteEvent:
        """Retrieve a remote event by ID or by remote event token.

        Raises:
            NotFoundError: If the event could not be retrieved, for whatever reason.
        """
        reply: dict[str, t.Any] | None = None
        try:
            params = self._with_identity(ctx, {"id": event_id, "token": remote_token})
            key = CacheKey("get_event", event_id, remote_token, None, None, ctx.remote_contact_id)
            reply = ctx.cache.get(key)
            if reply is None:
                reply = self._call("RemoteEvent", "getsingle", params).reply
                if reply.get("id") is None:
                    raise NotFoundError(reply.get("error_message"), origin=ErrorOrigin.REMOTE)
                ctx.cache.set(key, reply)
            return RemoteEvent.model_validate(reply)
        except NotFoundError:
            raise
        except Exception:
            logger.exception("remote_event_retrieval_fault", event_id=event_id)
            raise NotFoundError((reply or {}).get("error_message"), origin=ErrorOrigin.FAULT) from None

    def get_form(
        self,
        ctx: GatewayContext,
        event_id: int | None,
        profile: str | None,
        remote_token: str | None = None,
        context: RegistrationContext | str = RegistrationContext.CREATE,
    ) -> dict[str, t.Any]:
        """Retrieve the registration form definition for a profile and context.

        Raises:
            FormRetrievalError: If the call did not complete.
        """
        context = RegistrationContext(context)
        params = self._with_identity(
            ctx, {"event_id": event_id, "profile": profile, "token": remote_token, "context": context.value}
        )
        key = CacheKey("get_form", event_id, remote_token, profile, context.value, ctx.remote_contact_id)
        reply = ctx.cache.get(key)
        if reply is None:
            call = self._call("RemoteParticipant", "get_form", params)
            if not call.is_done:
                raise FormRetrievalError()
            reply = call.reply
            ctx.cache.set(key, reply)
        return reply

    # --- validation & mutations ---

    def validate_registration(
        self,
        ctx: GatewayContext,
        event_id: int | None,
        profile: str | None,
        remote_token: str | None = None,
        context: RegistrationContext | str = RegistrationContext.CREATE,
        params: dict[str, t.Any] | None = None,
    ) -> dict[str, t.Any]:
        """Validate a registration submission without persisting anything.

        Returns:
            The field errors reported by the remote system; empty if the submission is valid.

        Raises:
            ValidationCallError: If the call did not complete and returned no field errors.
        """
        context = RegistrationContext(context)
        call_params = self._with_identity(
            ctx,
            {
                **(params or {}),
                "event_id": event_id,
                "profile": profile,
                "token": remote_token,
                "context": context.value,
            },
        )
        call = self._call("RemoteParticipant", "validate", call_params)
        errors = as_mapping(call.reply.get("values"))
        if not call.is_done and not errors:
            raise ValidationCallError()
        if errors:
            logger.info("remote_registration_invalid", event_id=event_id, fields=sorted(errors))
        return errors

    def _submit(
        self,
        ctx: GatewayContext,
        action: str,
        event_id: int | None,
        profile: str | None,
        remote_token: str | None,
        params: dict[str, t.Any] | None,
        emit_messages: bool,
        error_class: type[RemoteEventError],
    ) -> dict[str, t.Any]:
        call_params = self._with_identity(
            ctx, {**(params or {}), "event_id": event_id, "profile": profile, "token": remote_token}
        )
        call = self._call("RemoteParticipant", action, call_params)
        self._forward_messages(ctx, call.reply, emit_messages)
        if not call.is_done:
            raise error_class()
        return call.reply

    def create_registration(
        self,
        ctx: GatewayContext,
        event_id: int | None,
        profile: str | None,
        remote_token: str | None = None,
        params: dict[str, t.Any] | None = None,
        emit_messages: bool = False,
    ) -> dict[str, t.Any]:
        """Submit a new registration and return the full reply.

        Raises:
            RegistrationError: If the call did not complete.
        """
        reply = self._submit(
            ctx, "create", event_id, profile, remote_token, params, emit_messages, RegistrationError
        )
        logger.info("remote_registration_created", event_id=event_id, profile=profile)
        return reply

    def update_registration(
        self,
        ctx: GatewayContext,
        event_id: int | None,
        profile: str | None,
        remote_token: str | None = None,
        params: dict[str, t.Any] | None = None,
        emit_messages: bool = False,
    ) -> dict[str, t.Any]:
        """Submit an update of an existing registration and return the full reply.

        Raises:
            RegistrationUpdateError: If the call did not complete.
        """
        reply = self._submit(
            ctx, "update", event_id, profile, remote_token, params, emit_messages, RegistrationUpdateError
        )
        logger.info("remote_registration_updated", event_id=event_id, profile=profile)
        return reply

    def cancel_registration(
        self,
        ctx: GatewayContext,
        event_id: int | None,
        remote_token: str | None = None,
        emit_messages: bool = False,
    ) -> dict[str, t.Any]:
        """Cancel a registration.

        Returns:
            Only the ``values`` of the reply, i.e. the cancellation outcome.

        Raises:
            CancellationError: If the call did not complete.
        """
        params = self._with_identity(ctx, {"event_id": event_id, "token": remote_token})
        call = self._call("RemoteParticipant", "cancel", params)
        self._forward_messages(ctx, call.reply, emit_messages)
        if not call.is_done:
            raise CancellationError()
        logger.info("remote_registration_cancelled", event_id=event_id)
        return as_mapping(call.reply.get("values"))

    # --- check-in ---

    def get_checkin_info(self, ctx: GatewayContext, remote_token: str, emit_messages: bool = False) -> CheckinInfo:
        """Verify a check-in token and get the participant and the allowed check-in statuses.

        Raises:
            CheckinVerificationError: If the token could not be verified, for whatever reason.
        """
        reply: dict[str, t.Any] = {}
        try:
            params = self._with_identity(ctx, {"token": remote_token})
            call = self._call("EventCheckin", "verify", params)
            reply = call.reply
            self._forward_messages(ctx, reply, emit_messages)
            if not call.is_done:
                raise CheckinVerificationError(reply.get("error_message"), origin=ErrorOrigin.REMOTE)
            return CheckinInfo(
                fields=as_mapping(reply.get("values")),
                checkin_options=as_mapping(reply.get("checkin_options")),
            )
        except CheckinVerificationError:
            raise
        except Exception:
            logger.exception("remote_checkin_verification_fault")
            raise CheckinVerificationError(reply.get("error_message"), origin=ErrorOrigin.FAULT) from None

    def checkin_participant(
        self,
        ctx: GatewayContext,
        remote_token: str,
        status_id: int | str,
        emit_messages: bool = False,
    ) -> bool:
        """Check a participant in with the given participant status.

        Raises:
            CheckinError: If the call did not complete.
        """
        params = self._with_identity(ctx, {"token": remote_token, "status_id": status_id})
        call = self._call("EventCheckin", "confirm", params)
        self._forward_messages(ctx, call.reply, emit_messages)
        if not call.is_done:
            raise CheckinError()
        logger.info("remote_participant_checked_in", status_id=status_id)
        return True


@lru_cache(maxsize=1)
def get_gateway() -> RemoteEventGateway:
    """Get the gateway configured from settings.

    Built lazily and kept for the lifetime of the process; it holds no
    per-request state.
    """
    client = CiviRestClient(settings.CIVIMRF_CONNECTORS, max_retries=settings.CIVIMRF_MAX_RETRIES)
    return RemoteEventGateway(client=client, connector=settings.CIVIREMOTE_CONNECTOR)
