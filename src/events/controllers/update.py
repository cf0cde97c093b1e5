from ninja_extra import api_controller, route

from common.authentication import OptionalAuth
from common.schema import ValidationErrorResponse
from common.throttling import WriteThrottle
from events import schema
from events.service.gateway import RegistrationContext, RemoteEvent
from events.service.tokens import TokenScope

from .base import RemoteEventBaseController


@api_controller("/events", auth=OptionalAuth(), tags=["Registration"])
class RemoteEventUpdateController(RemoteEventBaseController):
    """Changes to an existing registration."""

    def _update_profile(self, event: RemoteEvent, profile: str | None) -> str:
        return self.resolve_profile(profile, event.default_update_profile, event.default_profile)

    @route.get(
        "/{int:event_id}/update",
        url_name="get_update_form",
        response=schema.RegistrationFormSchema,
    )
    def get_update_form(self, event_id: int) -> schema.RegistrationFormSchema:
        """Get the form for changing the current contact's registration, prefilled by the remote system.

        Returns 403 if the remote system does not allow the contact to edit the registration.
        """
        event = self.get_permitted_event(event_id, "can_edit_registration")
        profile = self._update_profile(event, None)
        return self.build_form(event, event_id, profile, None, RegistrationContext.UPDATE)

    @route.post(
        "/{int:event_id}/update",
        url_name="update_registration",
        response={200: schema.RegistrationResultSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_registration(
        self, event_id: int, payload: schema.RegistrationSubmissionSchema
    ) -> tuple[int, schema.RegistrationResultSchema | ValidationErrorResponse]:
        """Submit changes to the current contact's registration.

        Field errors reported by the remote validation are returned with 400.
        """
        event = self.get_permitted_event(event_id, "can_edit_registration")
        profile = self._update_profile(event, payload.profile)
        return self.submit_registration(event_id, None, profile, payload.values, RegistrationContext.UPDATE)

    @route.get(
        "/update/{event_token}",
        url_name="get_update_form_by_token",
        response=schema.RegistrationFormSchema,
    )
    def get_update_form_by_token(self, event_token: str) -> schema.RegistrationFormSchema:
        """Get the update form for a registration update link."""
        event = self.get_token_event(event_token, TokenScope.UPDATE)
        profile = self._update_profile(event, None)
        return self.build_form(event, None, profile, event_token, RegistrationContext.UPDATE)

    @route.post(
        "/update/{event_token}",
        url_name="update_registration_by_token",
        response={200: schema.RegistrationResultSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_registration_by_token(
        self, event_token: str, payload: schema.RegistrationSubmissionSchema
    ) -> tuple[int, schema.RegistrationResultSchema | ValidationErrorResponse]:
        """Submit registration changes through an update link."""
        event = self.get_token_event(event_token, TokenScope.UPDATE)
        profile = self._update_profile(event, payload.profile)
        return self.submit_registration(None, event_token, profile, payload.values, RegistrationContext.UPDATE)
