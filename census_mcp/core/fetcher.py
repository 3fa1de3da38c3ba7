"""
Outbound HTTP access to the Census API.

`fetch_json` is the only place that performs network requests: it goes
through the global rate gate, checks the status and decodes the body.
"""

import logging
import re
from typing import Any

import aiohttp

from census_mcp import config

from .exceptions import ApiError, ConfigError
from .rate_gate import rate_gate

logger = logging.getLogger(__name__)

API_KEY_VARIABLE = "CENSUS_API_KEY"

_KEY_PATTERN = re.compile(r"key=[^&]*")


def require_api_key(api_key: str | None = None) -> str:
    """Return the API key, raising ConfigError before any request if there is none."""
    key = api_key or config.CENSUS_API_KEY
    if not key:
        raise ConfigError(API_KEY_VARIABLE)
    return key


def mask_key(url: str) -> str:
    return _KEY_PATTERN.sub("key=***", url)


def _timeout() -> aiohttp.ClientTimeout:
    # 0 means no deadline, a hung request blocks its caller
    return aiohttp.ClientTimeout(total=config.REQUEST_TIMEOUT or None)


async def fetch_json(session: aiohttp.ClientSession, url: str) -> Any:
    """GET `url` and return its decoded JSON body.

    Raises ApiError with the raw response text on any non-2xx status.
    Transport and JSON decoding errors propagate unchanged.
    """
    await rate_gate.acquire()
    logger.debug(f"GET {mask_key(url)}")
    async with session.get(url, timeout=_timeout()) as resp:
        if not resp.ok:
            body = await resp.text()
            raise ApiError(resp.status, body)
        # the API does not always send an application/json content type
        return await resp.json(content_type=None)
