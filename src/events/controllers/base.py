import typing as t

from django.utils.translation import gettext as _
from ninja.errors import HttpError
from ninja_extra.exceptions import PermissionDenied

from accounts.service.identity import resolve_remote_contact_id
from common.controllers import UserAwareController
from common.schema import ValidationErrorResponse
from events.schema import RegistrationFormSchema, RegistrationResultSchema
from events.service.gateway import (
    GatewayContext,
    RegistrationContext,
    RemoteEvent,
    RemoteEventGateway,
    as_mapping,
    get_gateway,
)
from events.service.tokens import TokenScope, authorize_remote_token


class RemoteEventBaseController(UserAwareController):
    """Base controller for public remote event endpoints.

    Endpoints come in two flavours: addressed by event ID, authorized by the
    flags the remote system reports for the current contact, or addressed by
    a URL token, authorized by the token's scope.
    """

    def gateway(self) -> RemoteEventGateway:
        return get_gateway()

    def gateway_context(self) -> GatewayContext:
        """Build the gateway context for the current request."""
        request = self.context.request  # type: ignore[union-attr]
        return GatewayContext(
            remote_contact_id=resolve_remote_contact_id(self.maybe_user()),
            cache=request.remote_call_cache,  # type: ignore[union-attr]
            messages=request.remote_messages,  # type: ignore[union-attr]
        )

    def get_event(self, event_id: int | None, remote_token: str | None = None) -> RemoteEvent:
        return self.gateway().get_event(self.gateway_context(), event_id, remote_token)

    def get_permitted_event(self, event_id: int, flag: str) -> RemoteEvent:
        """Get an event the current contact may perform an action on.

        Args:
            event_id: The remote event ID.
            flag: The event flag granting the action, e.g. ``can_register``.

        Raises:
            NotFoundError: If the event could not be retrieved.
            PermissionDenied: If the remote system does not grant the action.
        """
        event = self.get_event(event_id)
        if not getattr(event, flag, False):
            raise PermissionDenied(_("You are not allowed to perform this action for this event."))
        return event

    def get_token_event(self, remote_token: str, scope: TokenScope) -> RemoteEvent:
        """Authorize a URL token for ``scope`` and get the event it was issued for.

        Raises:
            RemoteTokenError: If the token does not authorize ``scope``.
            NotFoundError: If the event could not be retrieved.
        """
        authorize_remote_token(remote_token, scope)
        return self.get_event(None, remote_token)

    @staticmethod
    def resolve_profile(profile: str | None, *fallbacks: str | None) -> str:
        """Pick the requested profile or the first configured fallback."""
        for candidate in (profile, *fallbacks):
            if candidate:
                return candidate
        raise HttpError(404, str(_("No registration profile is available for this event.")))

    @staticmethod
    def error_response(errors: dict[str, t.Any]) -> ValidationErrorResponse:
        """Shape remote field errors for a 400 response."""
        return ValidationErrorResponse(
            errors={
                str(field): [str(e) for e in error] if isinstance(error, list) else str(error)
                for field, error in errors.items()
            }
        )

    def build_form(
        self,
        event: RemoteEvent,
        event_id: int | None,
        profile: str,
        remote_token: str | None,
        context: RegistrationContext,
    ) -> RegistrationFormSchema:
        """Fetch the form definition for ``profile`` in ``context``."""
        form = self.gateway().get_form(self.gateway_context(), event_id, profile, remote_token, context)
        return RegistrationFormSchema(
            event=event,
            profile=profile,
            context=context,
            form=as_mapping(form.get("values")),
            messages=self.gateway_context().messages.as_list(),
        )

    def submit_registration(
        self,
        event_id: int | None,
        remote_token: str | None,
        profile: str,
        values: dict[str, t.Any],
        context: RegistrationContext,
    ) -> tuple[int, RegistrationResultSchema | ValidationErrorResponse]:
        """Validate ``values`` remotely and, if valid, create or update the registration.

        Returns:
            400 with the field errors if validation failed, 200 with the result otherwise.
        """
        gateway = self.gateway()
        ctx = self.gateway_context()
        errors = gateway.validate_registration(ctx, event_id, profile, remote_token, context, params=values)
        if errors:
            return 400, self.error_response(errors)
        submit = gateway.update_registration if context == RegistrationContext.UPDATE else gateway.create_registration
        reply = submit(ctx, event_id, profile, remote_token, params=values, emit_messages=True)
        return 200, RegistrationResultSchema(values=as_mapping(reply.get("values")), messages=ctx.messages.as_list())
