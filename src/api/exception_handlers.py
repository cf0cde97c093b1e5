"""Exception handlers for the API."""

import traceback
import typing as t
from copy import deepcopy

import orjson
import structlog
from django.conf import settings
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import ErrorOrigin, RemoteEventError, RemoteTokenError

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    metadata: dict[str, t.Any] = {
        "headers": obfuscate(dict(request.headers)),
        "method": request.method,
        "path": request.path,
        "GET": obfuscate(request.GET.dict()),
        "user": str(request.user) if getattr(request, "user", None) else None,
    }
    if request.method in ("POST", "PUT", "PATCH") and request.headers.get("Content-Type") == "application/json":
        try:
            metadata["json"] = obfuscate(orjson.loads(request.body))
        except (orjson.JSONDecodeError, TypeError):  # pragma: no cover
            metadata["json"] = None
    logger.exception("INTERNAL_SERVER_ERROR", exc_info=True, stack_info=True, **metadata)
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_remote_event_error(request: HttpRequest, exc: RemoteEventError | t.Type[RemoteEventError]) -> Response:
    """Handle an error reported by, or talking to, the remote event system.

    The message is either the remote system's own message or a translated fallback.
    """
    assert isinstance(exc, RemoteEventError)
    log = logger.warning if exc.origin == ErrorOrigin.FAULT else logger.info
    log("REMOTE_EVENT_ERROR", error=type(exc).__name__, origin=exc.origin.value, path=request.path)
    return Response(status=exc.status_code, data={"detail": str(exc.message)})


def handle_remote_token_error(request: HttpRequest, exc: RemoteTokenError | t.Type[RemoteTokenError]) -> Response:
    """Handle a URL token that does not authorize the requested action."""
    assert isinstance(exc, RemoteTokenError)
    return Response(status=403, data={"detail": str(exc.message)})


SENSITIVE_KEYS = {"password", "token", "x-api-key", "authorization", "authentication", "api_key", "key"}


def obfuscate(data: t.Any) -> t.Any:
    """Obfuscate sensitive data in payloads and headers."""
    if not isinstance(data, dict):
        return data
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data
