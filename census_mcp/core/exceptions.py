"""
Exception classes for the Census API client.

Every failure raised by the core is a CensusError so the tool layer can
turn it into an error result without masking unexpected bugs.
"""

import sentry_sdk


class CensusError(Exception):
    """Base class for errors raised while talking to the Census API."""


class ConfigError(CensusError):
    """A required setting (usually the API key) is missing."""

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"{variable} environment variable is required")


class ApiError(CensusError):
    """The Census API answered with a non-success status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Census API {status}: {body}")


class DecodeError(CensusError):
    """A decoded response does not have the shape expected for its endpoint."""

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        self.detail = detail
        super().__init__(f"Unexpected response from {url}: {detail}")


def report_exception(exc: BaseException, **tags) -> str | None:
    """Send an exception to Sentry with extra tags, if Sentry is configured."""
    if not sentry_sdk.get_client().is_active():
        return None
    with sentry_sdk.new_scope() as scope:
        scope.set_tags({key: value for key, value in tags.items() if value is not None})
        return sentry_sdk.capture_exception(exc)
