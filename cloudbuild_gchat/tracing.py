"""
Tracing helpers

Spans go to Sentry performance monitoring when a DSN is configured, otherwise
they are created and discarded.
"""

import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from config_management.schemas import TracingConfig

logger = logging.getLogger(__name__)


def init_tracing(config: TracingConfig, service_name: str, **options) -> bool:
    """
    Initialize the Sentry SDK. Extra options (a custom transport for instance)
    are passed to sentry_sdk.init.

    Returns:
        True if Sentry was initialized
    """
    if not config.dsn:
        logger.debug("Sentry DSN not configured, tracing disabled")
        return False

    sentry_sdk.init(
        dsn=config.dsn,
        environment=config.environment,
        traces_sample_rate=config.traces_sample_rate,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        send_default_pii=False,
        **options,
    )
    sentry_sdk.set_tag("service", service_name)
    logger.info(f"Sentry tracing enabled for {service_name} ({config.environment})")
    return True


def span(op: str, name: str):
    """Start a child span of the current transaction."""
    return sentry_sdk.start_span(op=op, name=name)


def set_build_context(build_id: str, status: str) -> None:
    sentry_sdk.set_tag("build_id", build_id)
    sentry_sdk.set_tag("build_status", status)
