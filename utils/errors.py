"""
Error taxonomy for the refresh pipeline.

Retryable:
- UpstreamApiError: non-2xx response from the upstream API
- AntiBotRejection: HTTP 403, the upstream's anti-bot wall

Terminal:
- RetryExhaustedError: every attempt of one request failed
- TokenError: no usable token, the whole cycle is aborted
- MalformedResponseError: response body lacks a required field
- PayloadDecodeError: content payload is not base64 encoded UTF-8
"""

from typing import Optional


class RefresherError(Exception):
    """Base class for refresh pipeline errors."""


class UpstreamApiError(RefresherError):
    """Upstream API answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = "", url: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"API request failed! Status: {status_code} {reason}".rstrip())


class AntiBotRejection(UpstreamApiError):
    """HTTP 403, treated as an anti-bot rejection."""

    def __init__(self, status_code: int = 403, reason: str = "Forbidden", url: str = "") -> None:
        super().__init__(status_code, reason, url)
        self.args = (f"Request rejected by anti-bot protection (403 {reason}): {url}",)


class RetryExhaustedError(RefresherError):
    """All attempts of a request failed; carries the last observed error."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Request failed after {attempts} attempts: {last_error}")


class TokenError(RefresherError):
    """Token could not be acquired for this cycle."""


class MalformedResponseError(RefresherError):
    """Response body is missing a required field."""


class PayloadDecodeError(RefresherError):
    """Payload could not be decoded from base64 to UTF-8 text."""
