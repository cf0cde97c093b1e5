"""Testing utilities for code that talks to the remote event system."""

import typing as t

from events.service.remote_client import Call, reply_status


class FakeRemoteClient:
    """A scripted stand-in for the CiviCRM REST client.

    Replies are registered per ``(entity, action)``; unscripted actions fail
    the way a transport error would. Every executed call is recorded so tests
    can assert on the exact parameters that were sent.
    """

    def __init__(self) -> None:
        """Start without replies."""
        self.replies: dict[tuple[str, str], dict[str, t.Any]] = {}
        self.calls: list[Call] = []

    def reply(self, entity: str, action: str, reply: dict[str, t.Any]) -> None:
        self.replies[(entity, action)] = reply

    def execute_call(
        self,
        connector: str,
        entity: str,
        action: str,
        params: dict[str, t.Any],
        options: dict[str, t.Any] | None = None,
    ) -> Call:
        reply = self.replies.get((entity, action), {"is_error": 1})
        call = Call(entity=entity, action=action, params=dict(params), options=options or {}, reply=dict(reply))
        call.status = reply_status(call.reply)
        self.calls.append(call)
        return call

    def calls_to(self, entity: str, action: str) -> list[Call]:
        return [c for c in self.calls if (c.entity, c.action) == (entity, action)]
