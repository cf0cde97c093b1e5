"""OpenTelemetry distributed tracing setup."""

import logging

from django.conf import settings
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio

logger = logging.getLogger(__name__)

TRACER_NAME = "civiremote"


def get_tracer() -> trace.Tracer:
    """Return the tracer used for spans around remote calls.

    Without an initialized provider this is OpenTelemetry's no-op tracer.
    """
    return trace.get_tracer(TRACER_NAME)


def init_tracing() -> None:
    """Initialize OpenTelemetry distributed tracing.

    Sets up:
    - TracerProvider with resource attributes
    - OTLP exporter
    - Sampling based on environment
    - Auto-instrumentation for Django and for the `requests` calls made to CiviCRM
    """
    if not settings.ENABLE_OBSERVABILITY:
        logger.info("Observability disabled - skipping OpenTelemetry tracing initialization")
        return

    resource = Resource.create(
        {
            SERVICE_NAME: settings.SERVICE_NAME,
            SERVICE_VERSION: settings.SERVICE_VERSION,
            DEPLOYMENT_ENVIRONMENT: settings.DEPLOYMENT_ENVIRONMENT,
        }
    )

    sampler = ParentBasedTraceIdRatio(settings.TRACING_SAMPLE_RATE)
    tracer_provider = TracerProvider(
        resource=resource,
        sampler=sampler,
    )

    otlp_exporter = OTLPSpanExporter(
        endpoint=f"{settings.OTEL_EXPORTER_OTLP_ENDPOINT}/v1/traces",
    )

    # Exports spans asynchronously
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(tracer_provider)

    try:
        DjangoInstrumentor().instrument()
        RequestsInstrumentor().instrument()
        logger.info(
            f"OpenTelemetry tracing initialized: service={settings.SERVICE_NAME}, "
            f"sample_rate={settings.TRACING_SAMPLE_RATE}, endpoint={settings.OTEL_EXPORTER_OTLP_ENDPOINT}"
        )
    except Exception as e:
        logger.error(f"Failed to initialize OpenTelemetry tracing: {e}", exc_info=True)
