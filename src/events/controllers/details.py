from ninja_extra import api_controller, route

from common.authentication import OptionalAuth
from events.service.gateway import RemoteEvent

from .base import RemoteEventBaseController


@api_controller("/events", auth=OptionalAuth(), tags=["Events"])
class RemoteEventDetailsController(RemoteEventBaseController):
    @route.get("/{int:event_id}", url_name="get_event", response=RemoteEvent)
    def get_event_details(self, event_id: int) -> RemoteEvent:
        """Retrieve a remote event.

        The event is returned as the remote system reports it for the current contact, including
        the flags telling whether the contact can register, edit or cancel a registration.
        Returns 404 if the event does not exist or cannot be retrieved.
        """
        return self.get_event(event_id)
