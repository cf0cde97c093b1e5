import typing as t

import pytest

from common.testing import FakeRemoteClient
from events.service.gateway import RemoteEventGateway

EVENT_ID = 5


@pytest.fixture(autouse=True)
def scripted_gateway(patched_gateway: RemoteEventGateway) -> RemoteEventGateway:
    """All controller tests talk to the scripted remote client."""
    return patched_gateway


@pytest.fixture
def event_reply() -> dict[str, t.Any]:
    """A remote event open for registration, editing and cancellation."""
    return {
        "id": EVENT_ID,
        "title": "Summer Camp",
        "start_date": "2026-07-01 10:00:00",
        "can_register": 1,
        "can_edit_registration": 1,
        "can_cancel_registration": 1,
        "is_registered": 0,
        "default_profile": "Standard1",
        "default_update_profile": "OneClick",
    }


@pytest.fixture
def remote_event(remote_client: FakeRemoteClient, event_reply: dict[str, t.Any]) -> dict[str, t.Any]:
    remote_client.reply("RemoteEvent", "getsingle", event_reply)
    return event_reply


@pytest.fixture
def form_reply(remote_client: FakeRemoteClient) -> dict[str, t.Any]:
    reply = {
        "is_error": 0,
        "values": {
            "first_name": {"name": "first_name", "type": "Text", "required": 1, "label": "First name"},
            "email": {"name": "email", "type": "Text", "required": 1, "label": "E-mail"},
        },
    }
    remote_client.reply("RemoteParticipant", "get_form", reply)
    return reply
