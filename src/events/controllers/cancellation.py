from ninja_extra import api_controller, route

from common.authentication import OptionalAuth
from common.schema import ValidationErrorResponse
from common.throttling import WriteThrottle
from events import schema
from events.service.gateway import RegistrationContext, RemoteEvent
from events.service.tokens import TokenScope

from .base import RemoteEventBaseController


@api_controller("/events", auth=OptionalAuth(), tags=["Registration"])
class RemoteEventCancellationController(RemoteEventBaseController):
    """Cancellation of a registration."""

    def _cancel(
        self, event_id: int | None, remote_token: str | None, values: dict
    ) -> tuple[int, schema.CancellationResultSchema | ValidationErrorResponse]:
        gateway = self.gateway()
        ctx = self.gateway_context()
        errors = gateway.validate_registration(
            ctx, event_id, None, remote_token, RegistrationContext.CANCEL, params=values
        )
        if errors:
            return 400, self.error_response(errors)
        result = gateway.cancel_registration(ctx, event_id, remote_token, emit_messages=True)
        return 200, schema.CancellationResultSchema(values=result, messages=ctx.messages.as_list())

    @route.get("/{int:event_id}/cancel", url_name="get_cancellation", response=RemoteEvent)
    def get_cancellation(self, event_id: int) -> RemoteEvent:
        """Get the event whose registration is about to be cancelled.

        Returns 403 if the remote system does not allow the contact to cancel.
        """
        return self.get_permitted_event(event_id, "can_cancel_registration")

    @route.post(
        "/{int:event_id}/cancel",
        url_name="cancel_registration",
        response={200: schema.CancellationResultSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def cancel_registration(
        self, event_id: int, payload: schema.CancellationSubmissionSchema
    ) -> tuple[int, schema.CancellationResultSchema | ValidationErrorResponse]:
        """Cancel the current contact's registration."""
        self.get_permitted_event(event_id, "can_cancel_registration")
        return self._cancel(event_id, None, payload.values)

    @route.get("/cancel/{event_token}", url_name="get_cancellation_by_token", response=RemoteEvent)
    def get_cancellation_by_token(self, event_token: str) -> RemoteEvent:
        """Get the event for a cancellation link."""
        return self.get_token_event(event_token, TokenScope.CANCEL)

    @route.post(
        "/cancel/{event_token}",
        url_name="cancel_registration_by_token",
        response={200: schema.CancellationResultSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def cancel_registration_by_token(
        self, event_token: str, payload: schema.CancellationSubmissionSchema
    ) -> tuple[int, schema.CancellationResultSchema | ValidationErrorResponse]:
        """Cancel a registration through a cancellation link."""
        self.get_token_event(event_token, TokenScope.CANCEL)
        return self._cancel(None, event_token, payload.values)
