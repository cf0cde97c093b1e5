from .cancellation import RemoteEventCancellationController
from .checkin import RemoteEventCheckinController
from .details import RemoteEventDetailsController
from .registration import RemoteEventRegistrationController
from .update import RemoteEventUpdateController

REMOTE_EVENT_CONTROLLERS: list[type] = [
    RemoteEventDetailsController,
    RemoteEventRegistrationController,
    RemoteEventUpdateController,
    RemoteEventCancellationController,
    RemoteEventCheckinController,
]

__all__ = [
    "RemoteEventDetailsController",
    "RemoteEventRegistrationController",
    "RemoteEventUpdateController",
    "RemoteEventCancellationController",
    "RemoteEventCheckinController",
    "REMOTE_EVENT_CONTROLLERS",
]
