# src/events/management/commands/issue_remote_token.py

import typing as t

from django.core.management.base import BaseCommand, CommandError

from events.service.tokens import TokenScope, issue_remote_token


class Command(BaseCommand):
    """Issue a URL token for registration, update, cancellation or check-in links.

    Tokens are normally minted by the remote system when it mails participants.
    This command signs one with the local secret, e.g. to try a link by hand.
    """

    help = "Issue a signed URL token for a remote event action"

    def add_arguments(self, parser: t.Any) -> None:
        """Add command arguments.

        Args:
            parser: The argument parser.
        """
        parser.add_argument("scope", choices=[scope.value for scope in TokenScope])
        parser.add_argument("--event-id", type=int, default=None, help="Event the token is issued for")
        parser.add_argument("--expires-in", type=int, default=None, help="Validity in minutes")

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Print the token."""
        if options["expires_in"] is not None and options["expires_in"] <= 0:
            raise CommandError("--expires-in must be positive.")
        token = issue_remote_token(
            TokenScope(options["scope"]),
            event_id=options["event_id"],
            expires_in=options["expires_in"],
        )
        self.stdout.write(token)
