"""Resolution of the remote contact a request acts as.

Every call to CiviCRM carries a ``remote_contact_id``. It is derived from the
authenticated user on the server side and never read from request input, so
a client cannot act on behalf of another contact by forging parameters.
"""

import structlog
from django.conf import settings
from django.contrib.auth.models import AnonymousUser

from accounts.models import RemoteUser

logger = structlog.get_logger(__name__)


def resolve_remote_contact_id(user: RemoteUser | AnonymousUser | None) -> str:
    """Get the remote contact ID for a user.

    Anonymous users and users without a linked contact act as the configured
    anonymous contact, which is an empty string unless configured otherwise.

    Args:
        user: The user of the current request, if any.

    Returns:
        The remote contact ID to send with every remote call.
    """
    anonymous_id: str = settings.CIVIREMOTE_ANONYMOUS_CONTACT_ID
    if user is None or not user.is_authenticated:
        return anonymous_id
    remote_contact_id = getattr(user, "remote_contact_id", "") or ""
    if not remote_contact_id:
        logger.debug("user_not_linked_to_remote_contact", user_id=str(user.pk))
        return anonymous_id
    return str(remote_contact_id)
