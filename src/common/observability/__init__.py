"""Observability utilities for CiviRemote."""

from .tracing import get_tracer, init_tracing

__all__ = ["get_tracer", "init_tracing"]
