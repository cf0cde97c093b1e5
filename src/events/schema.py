import typing as t

from ninja import Field, Schema

from common.schema import StatusMessageSchema
from events.service.gateway import RegistrationContext, RemoteEvent


class RegistrationFormSchema(Schema):
    event: RemoteEvent
    profile: str | None = None
    context: RegistrationContext
    form: dict[str, t.Any] = Field(default_factory=dict, description="Field definitions as described by CiviCRM")
    messages: list[StatusMessageSchema] = Field(default_factory=list)


class RegistrationSubmissionSchema(Schema):
    profile: str | None = Field(None, description="Registration profile; defaults to the event's default profile")
    values: dict[str, t.Any] = Field(default_factory=dict, description="Submitted field values")


class RegistrationResultSchema(Schema):
    values: dict[str, t.Any] = Field(default_factory=dict)
    messages: list[StatusMessageSchema] = Field(default_factory=list)


class CancellationSubmissionSchema(Schema):
    values: dict[str, t.Any] = Field(default_factory=dict)


class CancellationResultSchema(Schema):
    values: dict[str, t.Any] = Field(default_factory=dict)
    messages: list[StatusMessageSchema] = Field(default_factory=list)


class CheckinInfoSchema(Schema):
    fields: dict[str, t.Any] = Field(default_factory=dict, description="The participant as seen by CiviCRM")
    checkin_options: dict[str, t.Any] = Field(default_factory=dict, description="Allowed participant status IDs")
    messages: list[StatusMessageSchema] = Field(default_factory=list)


class CheckinSubmissionSchema(Schema):
    status_id: int


class CheckinResultSchema(Schema):
    checked_in: bool
    messages: list[StatusMessageSchema] = Field(default_factory=list)
