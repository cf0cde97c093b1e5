import typing as t
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class RemoteUser(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    remote_contact_id = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text="Identifier of the contact this user acts as in the remote CiviCRM instance",
    )
    language = models.CharField(
        max_length=7,
        choices=settings.LANGUAGES,
        default=settings.LANGUAGE_CODE,
        db_index=True,
        help_text="User's preferred language",
    )

    class Meta:
        ordering = ["username"]
        permissions = [
            ("checkin_participants", "Can check in event participants"),
        ]

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Strip stray whitespace from the remote contact ID before saving."""
        self.remote_contact_id = (self.remote_contact_id or "").strip()
        super().save(*args, **kwargs)

    @property
    def is_linked(self) -> bool:
        """Whether the user acts as a remote contact."""
        return bool(self.remote_contact_id)
