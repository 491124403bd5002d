"""Structured logging setup."""

import logging

import structlog

from rolegate.config import Settings, get_settings


def configure_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """Configure structlog for the host process.

    Production renders JSON lines; every other environment gets the
    console renderer.

    Args:
        settings: Settings to read the environment and level from
        level: Overrides the configured log level
    """
    settings = settings or get_settings()
    numeric_level = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.is_production
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = [
    "configure_logging",
]
