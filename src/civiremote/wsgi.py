"""WSGI config for the civiremote project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "civiremote.settings")

application = get_wsgi_application()
