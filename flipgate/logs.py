"""
Structured logging setup.

Usage:
    from flipgate.config import get_settings
    from flipgate.logs import configure_logging

    configure_logging(get_settings())
"""

import logging
from typing import Any

import structlog

from .config import Settings


def add_service_name(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor tagging every event with the library name."""
    event_dict.setdefault("service", "flipgate")
    return event_dict


def configure_logging(settings: Settings) -> None:
    """Configure structlog from settings (level and json/text output)."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer: Any
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_name,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
