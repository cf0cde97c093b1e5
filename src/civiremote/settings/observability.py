"""Observability settings for CiviRemote.

Configures:
- Structlog (structured logging with JSON output for Loki)
- OpenTelemetry (distributed tracing, including outbound CiviCRM calls)
"""

import re
import typing as t

import structlog
from decouple import config

from .base import VERSION

# Observability toggle
ENABLE_OBSERVABILITY = config("ENABLE_OBSERVABILITY", default=False, cast=bool)

# Sampling configuration
TRACING_SAMPLE_RATE = config(
    "TRACING_SAMPLE_RATE", default=1.0 if config("DEBUG", default=False, cast=bool) else 0.1, cast=float
)

# Service identification
SERVICE_NAME = config("SERVICE_NAME", default="civiremote")
SERVICE_VERSION = VERSION
DEPLOYMENT_ENVIRONMENT = config(
    "DEPLOYMENT_ENVIRONMENT", default="development" if config("DEBUG", default=False, cast=bool) else "production"
)

# OpenTelemetry configuration
OTEL_EXPORTER_OTLP_ENDPOINT = config("OTEL_EXPORTER_OTLP_ENDPOINT", default="http://localhost:4318")


# Structlog configuration
def scrub_pii(logger: t.Any, method_name: str, event_dict: dict[str, t.Any]) -> dict[str, t.Any]:
    """Scrub PII from log events.

    Redacts credentials and URL tokens, and masks e-mail addresses in free text.
    """
    sensitive_keys = [
        "password",
        "secret",
        "api_key",
        "site_key",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
        "cookie",
    ]

    def _scrub_dict(d: t.Any) -> dict[str, t.Any]:
        if not isinstance(d, dict):
            return t.cast(dict[str, t.Any], d)

        for key in list(d.keys()):
            if any(sensitive in key.lower() for sensitive in sensitive_keys):
                d[key] = "[REDACTED]"
            elif isinstance(d[key], dict):
                d[key] = _scrub_dict(d[key])
            elif isinstance(d[key], str):
                # Only scrub emails from non-email fields
                if "email" not in key.lower():
                    d[key] = re.sub(r"\b[\w\.-]+@[\w\.-]+\.\w+\b", "[EMAIL]", d[key])

        return t.cast(dict[str, t.Any], d)

    return _scrub_dict(event_dict)


def add_app_context(logger: t.Any, method_name: str, event_dict: dict[str, t.Any]) -> dict[str, t.Any]:
    """Add application-level context to all log events."""
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = SERVICE_VERSION
    event_dict["environment"] = DEPLOYMENT_ENVIRONMENT
    return event_dict


STRUCTLOG_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
    add_app_context,
    scrub_pii,  # Scrub PII before serialization
    structlog.processors.JSONRenderer(),
]

# Processors for foreign loggers (Django, urllib3, etc.)
FOREIGN_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    add_app_context,
    scrub_pii,
]

structlog.configure(
    processors=STRUCTLOG_PROCESSORS,  # type: ignore[arg-type]
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)


LOKI_URL = config("LOKI_URL", default="http://localhost:3100")

LOGGING_HANDLERS: dict[str, dict[str, t.Any]] = {
    "console": {
        "class": "logging.StreamHandler",
        "formatter": "json",
    },
}

# Loki is fed through a QueueHandler so request threads never block on HTTP pushes.
if ENABLE_OBSERVABILITY:
    LOGGING_HANDLERS["loki"] = {
        "class": "logging_loki.LokiHandler",
        "url": f"{LOKI_URL}/loki/api/v1/push",
        "tags": {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": DEPLOYMENT_ENVIRONMENT,
        },
        "version": "1",
    }

    LOGGING_HANDLERS["queue"] = {
        "class": "logging.handlers.QueueHandler",
        "queue": {
            "()": "queue.Queue",
            "maxsize": 10000,  # Drop logs if queue fills
        },
    }

_HANDLERS = ["console", "queue"] if ENABLE_OBSERVABILITY else ["console"]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.JSONRenderer(),
            "foreign_pre_chain": FOREIGN_PRE_CHAIN,
        },
    },
    "handlers": LOGGING_HANDLERS,
    "root": {
        "handlers": _HANDLERS,
        "level": "DEBUG" if config("DEBUG", default=False, cast=bool) else "INFO",
    },
    "loggers": {
        "django": {
            "handlers": _HANDLERS,
            "level": "INFO",
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": _HANDLERS,
            "level": "WARNING",
            "propagate": False,
        },
        "urllib3": {
            "handlers": _HANDLERS,
            "level": "WARNING",  # Every CiviCRM call goes through urllib3
            "propagate": False,
        },
    },
}
