import typing as t

from django.contrib.auth.models import AnonymousUser
from ninja_extra import ControllerBase

from accounts.models import RemoteUser


class UserAwareController(ControllerBase):
    def maybe_user(self) -> RemoteUser | AnonymousUser:
        """Get the user for this request."""
        return t.cast(RemoteUser | AnonymousUser, self.context.request.user)  # type: ignore[union-attr]

    def user(self) -> RemoteUser:
        """Get the user for this request."""
        return t.cast(RemoteUser, self.context.request.user)  # type: ignore[union-attr]
