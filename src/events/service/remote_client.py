"""Client for the CiviCRM REST API (APIv3), used for all remote event calls.

The gateway only relies on the `RemoteCallClient` protocol: execute a named
action on a named entity and get back a `Call` carrying the reply and a
status. `CiviRestClient` implements it over HTTP the way CiviMRF connectors
do: a form-encoded POST with the parameters JSON-encoded in ``json``.

Transport problems never raise. They produce a failed `Call` whose reply
holds no ``error_message``, so callers fall back to their own message.
"""

import typing as t
from dataclasses import dataclass, field
from enum import StrEnum

import orjson
import requests
import structlog
from django.core.exceptions import ImproperlyConfigured
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from common.observability import get_tracer

logger = structlog.get_logger(__name__)

# Actions that do not change remote state and may be sent more than once.
READ_ONLY_ACTIONS = frozenset({"get", "getsingle", "get_form", "verify"})


class CallStatus(StrEnum):
    DONE = "done"
    ERROR = "error"


@dataclass
class Call:
    """A single executed remote call."""

    entity: str
    action: str
    params: dict[str, t.Any]
    options: dict[str, t.Any] = field(default_factory=dict)
    reply: dict[str, t.Any] = field(default_factory=dict)
    status: CallStatus = CallStatus.ERROR

    @property
    def is_done(self) -> bool:
        return self.status == CallStatus.DONE


class RemoteCallClient(t.Protocol):
    """Executes remote actions against a configured connector."""

    def execute_call(
        self,
        connector: str,
        entity: str,
        action: str,
        params: dict[str, t.Any],
        options: dict[str, t.Any] | None = None,
    ) -> Call:
        """Execute ``entity.action`` with ``params`` and return the finished call."""
        ...


def reply_status(reply: dict[str, t.Any]) -> CallStatus:
    """Derive the call status from an APIv3 reply.

    APIv3 flags failures with a truthy ``is_error``; ``getsingle`` replies
    carry the entity fields at the top level and may omit the flag entirely.
    """
    try:
        is_error = int(reply.get("is_error") or 0)
    except (TypeError, ValueError):
        is_error = 1
    return CallStatus.ERROR if is_error else CallStatus.DONE


class CiviRestClient:
    """`RemoteCallClient` talking to the CiviCRM REST endpoint with `requests`."""

    def __init__(
        self,
        connectors: dict[str, dict[str, t.Any]],
        *,
        max_retries: int = 3,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            connectors: Connector profiles by name, each with ``url``, ``api_key``,
                ``site_key`` and an optional ``timeout`` in seconds.
            max_retries: Attempts for read-only actions failing to connect.
            session: HTTP session to use, mainly for tests.
        """
        self.connectors = connectors
        self.max_retries = max(1, max_retries)
        self.session = session or requests.Session()

    def get_profile(self, connector: str) -> dict[str, t.Any]:
        try:
            return self.connectors[connector]
        except KeyError:
            raise ImproperlyConfigured(f"Unknown CiviMRF connector '{connector}'.")

    def execute_call(
        self,
        connector: str,
        entity: str,
        action: str,
        params: dict[str, t.Any],
        options: dict[str, t.Any] | None = None,
    ) -> Call:
        """Execute a remote call and return it with reply and status filled in."""
        profile = self.get_profile(connector)
        call = Call(entity=entity, action=action, params=params, options=options or {})

        with get_tracer().start_as_current_span(
            "civiremote.call",
            attributes={"civiremote.entity": entity, "civiremote.action": action, "civiremote.connector": connector},
        ) as span:
            try:
                response = self._send(profile, self._build_payload(profile, call), action in READ_ONLY_ACTIONS)
                response.raise_for_status()
                reply = orjson.loads(response.content)
            except requests.RequestException as e:
                logger.warning("remote_call_transport_failed", entity=entity, action=action, error=str(e))
                span.set_attribute("civiremote.status", CallStatus.ERROR.value)
                call.reply = {"is_error": 1}
                return call
            except orjson.JSONDecodeError:
                logger.warning("remote_call_invalid_reply", entity=entity, action=action)
                span.set_attribute("civiremote.status", CallStatus.ERROR.value)
                call.reply = {"is_error": 1}
                return call

            if not isinstance(reply, dict):
                reply = {"is_error": 1}
            call.reply = reply
            call.status = reply_status(reply)
            span.set_attribute("civiremote.status", call.status.value)

        logger.debug("remote_call_executed", entity=entity, action=action, status=call.status.value)
        return call

    def _build_payload(self, profile: dict[str, t.Any], call: Call) -> dict[str, str]:
        params = {key: value for key, value in call.params.items() if value is not None}
        if call.options:
            params["options"] = call.options
        return {
            "entity": call.entity,
            "action": call.action,
            "version": "3",
            "api_key": profile.get("api_key", ""),
            "key": profile.get("site_key", ""),
            "json": orjson.dumps(params).decode(),
        }

    def _send(self, profile: dict[str, t.Any], payload: dict[str, str], retry: bool) -> requests.Response:
        """POST the payload, retrying connection errors for read-only actions."""
        retrying = Retrying(
            retry=retry_if_exception_type(requests.ConnectionError),
            stop=stop_after_attempt(self.max_retries if retry else 1),
            wait=wait_random_exponential(multiplier=0.5, max=5),
            reraise=True,
        )
        return retrying(
            self.session.post,
            profile["url"],
            data=payload,
            headers={"Accept": "application/json", "X-Requested-With": "XMLHttpRequest"},
            timeout=profile.get("timeout", 30),
        )
