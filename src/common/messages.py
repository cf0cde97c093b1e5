"""Per-request channel for status messages reported by the remote system.

CiviCRM attaches ``status_messages`` to some replies (e.g. "You are now on the
waiting list."). They are only meant for the user when the caller asks for
them, so the gateway pushes them here and the controllers return them
alongside their payload.
"""

import typing as t

from common.schema import StatusMessageSchema

SEVERITIES = ("status", "warning", "error")


def normalize_status_message(raw: t.Any) -> StatusMessageSchema | None:
    """Turn one remote status message into a StatusMessageSchema.

    Remote messages are either plain strings or mappings with ``message`` and
    ``severity`` keys. Unknown severities fall back to ``status``; empty
    messages are dropped.
    """
    if isinstance(raw, dict):
        message = str(raw.get("message") or "").strip()
        severity = raw.get("severity") or "status"
    else:
        message = str(raw or "").strip()
        severity = "status"
    if not message:
        return None
    if severity not in SEVERITIES:
        severity = "status"
    return StatusMessageSchema(message=message, severity=severity)


class MessageChannel:
    """Collects status messages for the current request."""

    def __init__(self) -> None:
        """Start with an empty channel."""
        self._messages: list[StatusMessageSchema] = []

    def add(self, message: str, severity: str = "status") -> None:
        """Add a single message."""
        if normalized := normalize_status_message({"message": message, "severity": severity}):
            self._messages.append(normalized)

    def extend(self, raw_messages: t.Iterable[t.Any]) -> None:
        """Add every message of a remote ``status_messages`` list."""
        for raw in raw_messages:
            if normalized := normalize_status_message(raw):
                self._messages.append(normalized)

    def as_list(self) -> list[StatusMessageSchema]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> t.Iterator[StatusMessageSchema]:
        return iter(self._messages)
