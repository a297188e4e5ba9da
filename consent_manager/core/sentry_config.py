"""
Sentry error tracking configuration.
"""

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: Optional[str],
    environment: str = 'development',
    release: Optional[str] = None,
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize Sentry error tracking.

    Args:
        dsn: Sentry DSN; tracking stays disabled when empty
        environment: Environment name (development, staging, production)
        release: Release version
        traces_sample_rate: Fraction of transactions to trace (0.0 to 1.0)

    Returns:
        True if Sentry was initialized
    """
    if not dsn:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return False

    logging_integration = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR
    )

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release or '1.0.0',
        traces_sample_rate=traces_sample_rate,
        integrations=[
            logging_integration,
            AsyncioIntegration(),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        before_send=before_send_filter,
    )

    logger.info(
        f"Sentry initialized successfully: environment={environment}, "
        f"traces_sample_rate={traces_sample_rate}"
    )
    return True


def before_send_filter(event, hint):
    """
    Filter events before sending to Sentry.

    Drops 404s and strips consent choices from request bodies.
    """
    exc_info = hint.get('exc_info') if hint else None
    if exc_info:
        exc_type, exc_value, tb = exc_info
        if getattr(exc_value, 'status_code', None) == 404:
            return None

    request = event.get('request')
    if request:
        data = request.get('data')
        if isinstance(data, dict) and 'choices' in data:
            data['choices'] = '[Filtered]'

    return event
