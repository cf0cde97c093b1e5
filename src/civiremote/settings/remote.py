"""Settings for the remote CiviCRM connection and the URL tokens it issues."""

from decouple import config

from .base import SECRET_KEY

# Name of the connector profile used for all remote event calls.
CIVIREMOTE_CONNECTOR = config("CIVIREMOTE_CONNECTOR", default="default")

# Connector profiles for the CiviCRM REST endpoint (APIv3, `civicrm/ajax/rest`).
CIVIMRF_CONNECTORS = {
    CIVIREMOTE_CONNECTOR: {
        "url": config("CIVIMRF_URL", default="http://localhost/civicrm/ajax/rest"),
        "api_key": config("CIVIMRF_API_KEY", default=""),
        "site_key": config("CIVIMRF_SITE_KEY", default=""),
        "timeout": config("CIVIMRF_TIMEOUT", default=30, cast=int),
    },
}

# Connection errors on read-only actions are retried up to this many attempts.
CIVIMRF_MAX_RETRIES = config("CIVIMRF_MAX_RETRIES", default=3, cast=int)

# Secret shared with CiviCRM for verifying the scope of tokens embedded in URLs.
CIVIREMOTE_TOKEN_SECRET = config("CIVIREMOTE_TOKEN_SECRET", default=SECRET_KEY)
CIVIREMOTE_TOKEN_ALGORITHM = config("CIVIREMOTE_TOKEN_ALGORITHM", default="HS256")

# Contact ID sent on behalf of anonymous users and users not linked to a contact.
CIVIREMOTE_ANONYMOUS_CONTACT_ID = config("CIVIREMOTE_ANONYMOUS_CONTACT_ID", default="")
