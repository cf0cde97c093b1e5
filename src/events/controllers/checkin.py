from django.utils.translation import gettext as _
from ninja.errors import HttpError
from ninja_extra import api_controller, route

from common.authentication import I18nJWTAuth
from common.throttling import CheckinThrottle
from events import schema
from events.service.tokens import TokenScope, authorize_remote_token

from .base import RemoteEventBaseController
from .permissions import CanCheckinParticipants


@api_controller(
    "/events",
    auth=I18nJWTAuth(),
    permissions=[CanCheckinParticipants()],
    tags=["Check-in"],
    throttle=CheckinThrottle(),
)
class RemoteEventCheckinController(RemoteEventBaseController):
    """Check-in of participants by scanning their check-in link.

    Only staff with the check-in permission may use these endpoints.
    """

    @route.get("/checkin/{checkin_token}", url_name="get_checkin", response=schema.CheckinInfoSchema)
    def get_checkin(self, checkin_token: str) -> schema.CheckinInfoSchema:
        """Verify a check-in link and show the participant.

        Returns the participant as seen by the remote system and the participant statuses it may
        be checked in with. Returns 403 for links not meant for check-in and 400 if the remote
        system rejects the link.
        """
        authorize_remote_token(checkin_token, TokenScope.CHECKIN)
        ctx = self.gateway_context()
        info = self.gateway().get_checkin_info(ctx, checkin_token, emit_messages=True)
        return schema.CheckinInfoSchema(
            fields=info["fields"],
            checkin_options=info["checkin_options"],
            messages=ctx.messages.as_list(),
        )

    @route.post("/checkin/{checkin_token}", url_name="checkin", response=schema.CheckinResultSchema)
    def checkin(self, checkin_token: str, payload: schema.CheckinSubmissionSchema) -> schema.CheckinResultSchema:
        """Check the participant in with one of the offered statuses.

        Returns 400 if the status is not among the check-in options of the link.
        """
        authorize_remote_token(checkin_token, TokenScope.CHECKIN)
        gateway = self.gateway()
        ctx = self.gateway_context()
        info = gateway.get_checkin_info(ctx, checkin_token)
        # checkin_options is a status id -> label map; a list would be keyed by position.
        if str(payload.status_id) not in {str(option) for option in info["checkin_options"]}:
            raise HttpError(400, str(_("This status is not available for this participant.")))
        checked_in = gateway.checkin_participant(ctx, checkin_token, payload.status_id, emit_messages=True)
        return schema.CheckinResultSchema(checked_in=checked_in, messages=ctx.messages.as_list())
