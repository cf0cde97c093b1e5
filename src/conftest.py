"""
This conftest.py provides fixtures shared by all app tests.
"""

import secrets
import string
import typing as t
from unittest.mock import MagicMock

import pytest
from django.contrib.auth.models import Permission
from django.core.cache import cache
from django.test.client import Client
from ninja_jwt.tokens import RefreshToken
from pytest import MonkeyPatch

from accounts.models import RemoteUser
from common.testing import FakeRemoteClient
from events.service.gateway import GatewayContext, RemoteEventGateway


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Clear the Django cache so throttling state does not leak between tests."""
    cache.clear()


@pytest.fixture(autouse=True)
def increase_rate_limit(monkeypatch: MonkeyPatch) -> None:
    """Increase the rate limits for AuthThrottle to allow testing."""
    monkeypatch.setattr("common.throttling.AuthThrottle.rate", "1000/min")


class RemoteUserFactory:
    """Factory for creating RemoteUser instances for testing."""

    def create_user(self, **kwargs: t.Any) -> RemoteUser:
        username = kwargs.pop(
            "username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)) + "@user.test"
        )
        email = kwargs.pop("email", username + ("@test.com" if "@" not in username else ""))
        password = kwargs.pop("password", "password")
        return RemoteUser.objects.create_user(username=username, email=email, password=password, **kwargs)

    def __call__(self, **kwargs: t.Any) -> RemoteUser:
        return self.create_user(**kwargs)


@pytest.fixture
def remote_user_factory() -> RemoteUserFactory:
    return RemoteUserFactory()


@pytest.fixture
def user(remote_user_factory: RemoteUserFactory) -> RemoteUser:
    """A user linked to remote contact 42."""
    return remote_user_factory(username="linked@example.com", remote_contact_id="42")


@pytest.fixture
def unlinked_user(remote_user_factory: RemoteUserFactory) -> RemoteUser:
    """A user that is not linked to any remote contact."""
    return remote_user_factory(username="unlinked@example.com")


@pytest.fixture
def checkin_user(remote_user_factory: RemoteUserFactory) -> RemoteUser:
    """A staff member allowed to check participants in."""
    staff = remote_user_factory(username="door@example.com", remote_contact_id="7")
    staff.user_permissions.add(Permission.objects.get(codename="checkin_participants"))
    return staff


@pytest.fixture
def superuser(remote_user_factory: RemoteUserFactory) -> RemoteUser:
    """A superuser."""
    return remote_user_factory(is_superuser=True, is_staff=True)


def auth_client(user: RemoteUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")  # type: ignore[attr-defined]


@pytest.fixture
def user_client(user: RemoteUser) -> Client:
    return auth_client(user)


@pytest.fixture
def unlinked_user_client(unlinked_user: RemoteUser) -> Client:
    return auth_client(unlinked_user)


@pytest.fixture
def checkin_client(checkin_user: RemoteUser) -> Client:
    return auth_client(checkin_user)


@pytest.fixture
def remote_client() -> FakeRemoteClient:
    return FakeRemoteClient()


@pytest.fixture
def gateway(remote_client: FakeRemoteClient) -> RemoteEventGateway:
    return RemoteEventGateway(client=remote_client, connector="default")


@pytest.fixture
def gateway_context() -> GatewayContext:
    """Context of a request made by remote contact 42."""
    return GatewayContext(remote_contact_id="42")


@pytest.fixture
def patched_gateway(monkeypatch: MonkeyPatch, gateway: RemoteEventGateway) -> RemoteEventGateway:
    """Route all controller calls through the scripted gateway."""
    monkeypatch.setattr("events.controllers.base.get_gateway", MagicMock(return_value=gateway))
    return gateway


@pytest.fixture
def superuser_client(superuser: RemoteUser) -> Client:
    return auth_client(superuser)
