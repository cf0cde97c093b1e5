"""Tests for the issue_remote_token management command."""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from events.service.tokens import TokenScope, authorize_remote_token


def test_issues_token_for_scope() -> None:
    out = StringIO()

    call_command("issue_remote_token", "checkin", "--event-id", "5", "--expires-in", "30", stdout=out)

    payload = authorize_remote_token(out.getvalue().strip(), TokenScope.CHECKIN)
    assert payload.event_id == 5
    assert payload.exp is not None


def test_rejects_non_positive_validity() -> None:
    with pytest.raises(CommandError):
        call_command("issue_remote_token", "register", "--expires-in", "0")
