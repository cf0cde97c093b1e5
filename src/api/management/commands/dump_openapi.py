"""Dump the OpenAPI schema in a json file."""

import json
import typing as t
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand
from ninja.responses import NinjaJSONEncoder

from api.api import api


class Command(BaseCommand):
    help = "Dump the OpenAPI schema of the CiviRemote Events API in a json file."

    def add_arguments(self, parser: t.Any) -> None:
        """Add the output argument."""
        parser.add_argument("--output", default=None, help="Target file, defaults to .artifacts/openapi.json")

    def handle(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Dump the OpenAPI schema to a JSON file."""
        default_file = settings.BASE_DIR.parent / ".artifacts" / "openapi.json"
        output_file = Path(kwargs["output"]) if kwargs.get("output") else default_file
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(json.dumps(api.get_openapi_schema(), indent=2, cls=NinjaJSONEncoder))
        self.stdout.write(self.style.SUCCESS(f"OpenAPI schema dumped to {output_file}"))
