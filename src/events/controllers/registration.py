from ninja_extra import api_controller, route

from common.authentication import OptionalAuth
from common.schema import ValidationErrorResponse
from common.throttling import WriteThrottle
from events import schema
from events.service.gateway import RegistrationContext
from events.service.tokens import TokenScope

from .base import RemoteEventBaseController


@api_controller("/events", auth=OptionalAuth(), tags=["Registration"])
class RemoteEventRegistrationController(RemoteEventBaseController):
    """Registration forms and submissions, by event ID or by registration link."""

    @route.get(
        "/{int:event_id}/register",
        url_name="get_registration_form",
        response=schema.RegistrationFormSchema,
    )
    def get_registration_form(self, event_id: int) -> schema.RegistrationFormSchema:
        """Get the registration form of the event's default profile.

        Returns 403 if the remote system does not allow the current contact to register.
        """
        event = self.get_permitted_event(event_id, "can_register")
        profile = self.resolve_profile(None, event.default_profile)
        return self.build_form(event, event_id, profile, None, RegistrationContext.CREATE)

    @route.get(
        "/{int:event_id}/register/{profile}",
        url_name="get_registration_form_for_profile",
        response=schema.RegistrationFormSchema,
    )
    def get_registration_form_for_profile(self, event_id: int, profile: str) -> schema.RegistrationFormSchema:
        """Get the registration form of a specific registration profile."""
        event = self.get_permitted_event(event_id, "can_register")
        return self.build_form(event, event_id, profile, None, RegistrationContext.CREATE)

    @route.post(
        "/{int:event_id}/register",
        url_name="register",
        response={200: schema.RegistrationResultSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def register(
        self, event_id: int, payload: schema.RegistrationSubmissionSchema
    ) -> tuple[int, schema.RegistrationResultSchema | ValidationErrorResponse]:
        """Register for an event.

        The values are validated by the remote system first. Field errors are returned with 400
        and nothing is submitted. Status messages reported by the remote system (e.g. a place on
        the waiting list) are returned alongside the registration result.
        """
        event = self.get_permitted_event(event_id, "can_register")
        profile = self.resolve_profile(payload.profile, event.default_profile)
        return self.submit_registration(event_id, None, profile, payload.values, RegistrationContext.CREATE)

    @route.get(
        "/register/{event_token}",
        url_name="get_registration_form_by_token",
        response=schema.RegistrationFormSchema,
    )
    def get_registration_form_by_token(
        self, event_token: str, profile: str | None = None
    ) -> schema.RegistrationFormSchema:
        """Get the registration form for a registration link.

        Returns 403 if the link is invalid, expired or not meant for registering.
        """
        event = self.get_token_event(event_token, TokenScope.REGISTER)
        profile = self.resolve_profile(profile, event.default_profile)
        return self.build_form(event, None, profile, event_token, RegistrationContext.CREATE)

    @route.post(
        "/register/{event_token}",
        url_name="register_by_token",
        response={200: schema.RegistrationResultSchema, 400: ValidationErrorResponse},
        throttle=WriteThrottle(),
    )
    def register_by_token(
        self, event_token: str, payload: schema.RegistrationSubmissionSchema
    ) -> tuple[int, schema.RegistrationResultSchema | ValidationErrorResponse]:
        """Register through a registration link."""
        event = self.get_token_event(event_token, TokenScope.REGISTER)
        profile = self.resolve_profile(payload.profile, event.default_profile)
        return self.submit_registration(None, event_token, profile, payload.values, RegistrationContext.CREATE)
