import logging

import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from census_mcp import config

from .version import get_app_version


def get_sentry_kwargs():
    """
    Returns Sentry configuration kwargs.

    The integrations are created fresh each time so they hook into aiohttp
    when sentry_sdk.init() is called rather than at import time.
    """
    sample_rate = config.SENTRY_SAMPLE_RATE
    return {
        "dsn": config.SENTRY_DSN,
        "integrations": [
            AioHttpIntegration(),
            # stdout is the protocol channel for stdio, keep breadcrumbs only
            LoggingIntegration(level=logging.INFO, event_level=None),
        ],
        "release": f"census-mcp@{get_app_version()}",
        "traces_sample_rate": 1.0 if sample_rate is None else sample_rate,
    }


def init_sentry() -> bool:
    """Initialize Sentry when a DSN is configured, return whether it was."""
    if not config.SENTRY_DSN:
        return False
    sentry_sdk.init(**get_sentry_kwargs())
    return True
