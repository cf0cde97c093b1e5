import typing as t

from django.http import HttpRequest, HttpResponse

from common.messages import MessageChannel
from events.service.call_cache import CallCache


class RemoteCallCacheMiddleware:
    """Gives every request its own remote call cache and message channel.

    Both are dropped once the response is produced, so nothing read from the
    remote system outlives the request it was read for.
    """

    def __init__(self, get_response: t.Callable[[HttpRequest], HttpResponse]) -> None:
        """Initialize the middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """Attach a fresh cache, process the request, then discard the cache."""
        request.remote_call_cache = CallCache()  # type: ignore[attr-defined]
        request.remote_messages = MessageChannel()  # type: ignore[attr-defined]
        try:
            return self.get_response(request)
        finally:
            request.remote_call_cache.clear()  # type: ignore[attr-defined]
            del request.remote_call_cache  # type: ignore[attr-defined]
            del request.remote_messages  # type: ignore[attr-defined]
