"""Structured logging configuration with structlog."""

import logging

import structlog

from donatehub.config import Settings

# Chatty third-party loggers kept at WARNING unless debugging.
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "aiosqlite")


def setup_logging(settings: Settings) -> None:
    """Configure structlog for JSON (production) or console (development) output."""
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
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
    logging.basicConfig(level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if settings.debug else max(level, logging.WARNING))
