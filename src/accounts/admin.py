"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from accounts.models import RemoteUser


@admin.register(RemoteUser)
class RemoteUserAdmin(UserAdmin):
    """Admin for users, exposing the remote contact they are linked to."""

    list_display = ["username", "email", "remote_contact_id", "is_staff", "is_active"]
    list_filter = ["is_staff", "is_superuser", "is_active", "language"]
    search_fields = ["username", "email", "first_name", "last_name", "remote_contact_id"]
    fieldsets = (
        *UserAdmin.fieldsets,  # type: ignore[misc]
        ("CiviRemote", {"fields": ("remote_contact_id", "language")}),
    )
