"""Request-scoped memoization of idempotent remote reads.

A page often needs the same remote event more than once (access check, title
and form body). `CallCache` lets those reads share one round-trip. An
instance lives exactly as long as one request; see
`events.middleware.RemoteCallCacheMiddleware`.
"""

import typing as t


class CacheKey(t.NamedTuple):
    """Full parameter signature of a cacheable remote read."""

    operation: str
    event_id: int | None
    token: str | None
    profile: str | None
    context: str | None
    remote_contact_id: str


class CallCache:
    """Maps cache keys to remote replies for the lifetime of one request."""

    def __init__(self) -> None:
        """Start empty."""
        self._replies: dict[CacheKey, dict[str, t.Any]] = {}

    def get(self, key: CacheKey) -> dict[str, t.Any] | None:
        return self._replies.get(key)

    def set(self, key: CacheKey, reply: dict[str, t.Any]) -> None:
        self._replies[key] = reply

    def clear(self) -> None:
        self._replies.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._replies

    def __len__(self) -> int:
        return len(self._replies)
