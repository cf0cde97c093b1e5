"""Errors raised while talking to the remote event system.

Every message carried by these exceptions is safe to show to a user: it is
either the ``error_message`` reported by CiviCRM or a translated fallback,
never a traceback or transport detail.
"""

from enum import StrEnum

from django.utils.translation import gettext_lazy as _


class ErrorOrigin(StrEnum):
    REMOTE = "remote"  # the remote system reported the error
    FAULT = "fault"  # the call itself broke unexpectedly


class RemoteEventError(Exception):
    """Base class for all gateway errors."""

    status_code: int = 400
    default_message = _("The remote event system could not process the request.")

    def __init__(self, message: str | None = None, origin: ErrorOrigin = ErrorOrigin.REMOTE) -> None:
        """Store a user-safe message and where the error came from."""
        self.message = str(message or self.default_message)
        self.origin = origin
        super().__init__(self.message)


class NotFoundError(RemoteEventError):
    """Raised when a remote event does not exist or could not be retrieved."""

    status_code = 404
    default_message = _("Could not retrieve remote event.")


class FormRetrievalError(RemoteEventError):
    """Raised when the registration form definition could not be retrieved."""

    status_code = 502
    default_message = _("Retrieving form failed.")


class ValidationCallError(RemoteEventError):
    """Raised when a registration could not be validated at all.

    Field errors reported by a successful validation call are not errors of this kind.
    """

    status_code = 502
    default_message = _("The event registration validation failed.")


class RegistrationError(RemoteEventError):
    """Raised when a registration could not be submitted."""

    default_message = _("The event registration failed.")


class RegistrationUpdateError(RemoteEventError):
    """Raised when a registration update could not be submitted."""

    default_message = _("The event registration update failed.")


class CancellationError(RemoteEventError):
    """Raised when a registration could not be cancelled."""

    default_message = _("The event registration cancellation failed.")


class CheckinVerificationError(RemoteEventError):
    """Raised when a check-in token could not be verified."""

    default_message = _("The event checkin verification failed.")


class CheckinError(RemoteEventError):
    """Raised when a participant could not be checked in."""

    default_message = _("The event checkin failed.")


class RemoteTokenError(Exception):
    """Raised when a URL token is malformed, expired or issued for another action."""

    def __init__(self, message: str) -> None:
        """Store the user-safe reason."""
        self.message = message
        super().__init__(message)
