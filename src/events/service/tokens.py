"""Authorization of URL tokens for anonymous event actions.

CiviCRM mails participants links such as ``/events/cancel/<token>``. The token
stands in for a login: it identifies the participant and the event, and it is
only good for the action it was issued for. Tokens are JWTs signed with a
secret shared with the remote system and carry a ``scope`` claim.

The check runs before any gateway call; the gateway itself forwards the token
string untouched.
"""

import typing as t
from datetime import datetime, timedelta
from enum import StrEnum

import jwt
import structlog
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext as _
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from events.exceptions import RemoteTokenError

logger = structlog.get_logger(__name__)


class TokenScope(StrEnum):
    REGISTER = "register"
    UPDATE = "update"
    CANCEL = "cancel"
    CHECKIN = "checkin"


class RemoteTokenPayload(BaseModel):
    """The claims of a URL token."""

    model_config = ConfigDict(extra="ignore")

    scope: TokenScope
    exp: datetime | None = None
    iat: datetime | None = None
    event_id: int | None = None


def issue_remote_token(
    scope: TokenScope,
    *,
    event_id: int | None = None,
    expires_in: timedelta | int | None = None,
    secret: str | None = None,
    algorithm: str | None = None,
) -> str:
    """Create a URL token for a single action.

    Args:
        scope: The action the token authorizes.
        event_id: Optional event the token was issued for.
        expires_in: Validity (timedelta or minutes as int). Tokens without it never expire.
        secret: Signing secret, defaults to CIVIREMOTE_TOKEN_SECRET.
        algorithm: Signing algorithm, defaults to CIVIREMOTE_TOKEN_ALGORITHM.

    Returns:
        The encoded token.
    """
    now = timezone.now()
    payload: dict[str, t.Any] = {"scope": TokenScope(scope).value, "iat": now}
    if event_id is not None:
        payload["event_id"] = event_id
    if expires_in is not None:
        expires_in = timedelta(minutes=expires_in) if isinstance(expires_in, int) else expires_in
        payload["exp"] = now + expires_in
    return jwt.encode(
        payload,
        secret or settings.CIVIREMOTE_TOKEN_SECRET,
        algorithm=algorithm or settings.CIVIREMOTE_TOKEN_ALGORITHM,
    )


def authorize_remote_token(
    token: str | None,
    scope: TokenScope,
    secret: str | None = None,
    algorithms: list[str] | None = None,
) -> RemoteTokenPayload:
    """Verify a URL token and check that it was issued for ``scope``.

    Args:
        token: The token taken from the URL.
        scope: The action being requested.
        secret: Verification secret, defaults to CIVIREMOTE_TOKEN_SECRET.
        algorithms: Accepted algorithms, defaults to [CIVIREMOTE_TOKEN_ALGORITHM].

    Returns:
        The decoded token claims.

    Raises:
        RemoteTokenError: If the token is missing, malformed, expired or scoped to another action.
    """
    if not token:
        raise RemoteTokenError(_("Missing token."))
    try:
        decoded = jwt.decode(
            token,
            key=secret or settings.CIVIREMOTE_TOKEN_SECRET,
            algorithms=algorithms or [settings.CIVIREMOTE_TOKEN_ALGORITHM],
            options={"require": ["scope"]},
        )
        payload = TypeAdapter(RemoteTokenPayload).validate_python(decoded)
    except ExpiredSignatureError as e:
        logger.debug("remote_token_expired", scope=scope.value)
        raise RemoteTokenError(_("Token has expired.")) from e
    except (InvalidTokenError, PydanticValidationError) as e:
        logger.debug("remote_token_invalid", scope=scope.value)
        raise RemoteTokenError(_("Invalid token.")) from e

    if payload.scope != scope:
        logger.info("remote_token_scope_mismatch", expected=scope.value, actual=payload.scope.value)
        raise RemoteTokenError(_("This link is not valid for this action."))
    return payload


def is_token_authorized(token: str | None, scope: TokenScope) -> bool:
    """Predicate form of `authorize_remote_token`."""
    try:
        authorize_remote_token(token, scope)
    except RemoteTokenError:
        return False
    return True
