import logging.handlers

import structlog
from django.apps import AppConfig


class CommonConfig(AppConfig):
    """Configuration for the common app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "common"
    queue_listener: logging.handlers.QueueListener | None = None

    def ready(self) -> None:
        """Initialize app-level services.

        Called once Django is fully loaded.
        """
        from common.observability import init_tracing

        init_tracing()

        # Start QueueListener for async Loki logging
        self._start_queue_listener()

    def _start_queue_listener(self) -> None:
        """Start the QueueListener for async logging to Loki.

        This runs in a background thread and processes logs from the queue,
        sending them to Loki without blocking the main request threads.
        """
        import typing as t

        from django.conf import settings

        if not getattr(settings, "ENABLE_OBSERVABILITY", False):
            return

        logging_config = t.cast(dict[str, t.Any], settings.LOGGING)
        handlers = logging_config.get("handlers", {})

        loki_handler_config = handlers.get("loki")
        if not handlers.get("queue") or not loki_handler_config:
            return

        import logging

        queue_handler = next(
            (h for h in logging.getLogger().handlers if isinstance(h, logging.handlers.QueueHandler)),
            None,
        )
        if not queue_handler:
            return

        from logging_loki import LokiHandler

        class GracefulLokiHandler(LokiHandler):  # type: ignore[misc]
            """LokiHandler that silently fails on connection errors instead of crashing."""

            def handleError(self, record: logging.LogRecord) -> None:
                """Ignore connection errors to Loki; logging must never break a request."""

        loki_handler = GracefulLokiHandler(
            url=loki_handler_config["url"],
            tags=loki_handler_config["tags"],
            version=loki_handler_config["version"],
        )

        self.queue_listener = logging.handlers.QueueListener(
            queue_handler.queue,
            loki_handler,
            respect_handler_level=True,
        )
        self.queue_listener.start()

        logger = structlog.get_logger(__name__)
        logger.info(
            "Started QueueListener for async Loki logging",
            queue_maxsize=getattr(queue_handler.queue, "maxsize", None),
        )
