"""
Structured logging configuration using structlog.

Service modules log through the standard library. The API middleware uses a
structlog logger with request_id, method and path bound per request.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

APP_NAME = 'consent-manager'
APP_VERSION = '1.0.0'

# Event keys whose values may carry user identifiers or cookie contents.
REDACTED_KEYS = ('user_id', 'userId', 'cookie_value', 'choices')


def add_service_info(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add service name, version and normalized level to every entry."""
    event_dict['service'] = APP_NAME
    event_dict['version'] = APP_VERSION
    event_dict['level'] = 'warning' if method_name == 'warn' else method_name
    return event_dict


def redact_sensitive(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in REDACTED_KEYS:
        if event_dict.get(key) is not None:
            event_dict[key] = '[redacted]'
    return event_dict


def build_processors(json_logs: bool) -> list:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        redact_sensitive,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    return processors


def configure_structlog(
    log_level: str = 'INFO',
    json_logs: bool = True,
    development_mode: bool = False
) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        log_level: Logging level name
        json_logs: Render JSON lines instead of console output
        development_mode: Force console output
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=build_processors(json_logs and not development_mode),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Bind values included in every log entry of the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
