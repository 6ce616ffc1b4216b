"""structlog configuration shared by the API process and its services."""

import logging

import structlog

from reefsync.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON (default) or console output.

    Records pass through the stdlib root logger, so modules that log with
    ``logging.getLogger(__name__)`` end up in the same stream.
    """
    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer() if settings.log_format == "console" else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")
    # SQL echo is noisy at INFO even with echo disabled on the engine.
    logging.getLogger("sqlalchemy.engine").setLevel(max(level, logging.WARNING))
