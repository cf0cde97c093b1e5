from django.http import HttpRequest
from ninja_extra import ControllerBase
from ninja_extra.permissions import BasePermission

CHECKIN_PERMISSION = "accounts.checkin_participants"


class CanCheckinParticipants(BasePermission):
    """Only staff granted the check-in permission may check participants in."""

    message = "You are not allowed to check in participants."

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Check the user's Django permission."""
        user = request.user
        return bool(user and user.is_authenticated and user.has_perm(CHECKIN_PERMISSION))
