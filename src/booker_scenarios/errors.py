"""Error taxonomy for scenario steps.

Maps httpx transport failures to client errors and defines the assertion and
precondition errors raised by steps. The runner turns every ``BookerError``
into a step result; anything else propagates.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx


@dataclass
class BookerError(Exception):
    """Base error class for scenario errors."""

    message: str
    retryable: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        error: dict[str, Any] = {"type": type(self).__name__, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


@dataclass
class BookerClientError(BookerError):
    """Transport-level failure talking to the booking service."""

    message: str = "Request failed"
    retryable: bool = True


@dataclass
class StepAssertionError(BookerError):
    """Response status or shape did not match what the step requires."""

    message: str = "Assertion failed"
    status_code: int | None = None


@dataclass
class PreconditionError(BookerError):
    """State required by a step (token, working ID) was never established."""

    message: str = "Precondition not met"


def map_transport_error(error: httpx.TransportError, url: str) -> BookerClientError:
    """Map an httpx transport exception to BookerClientError.

    Args:
        error: Exception raised by httpx
        url: URL that was being accessed

    Returns:
        Retryable BookerClientError describing the failure
    """
    if isinstance(error, httpx.TimeoutException):
        return BookerClientError(
            message=f"Request timeout for {url}",
            data={"url": url, "original_error": str(error)},
        )

    if isinstance(error, httpx.ConnectError):
        parsed = urlparse(url)
        host_port = f"{parsed.hostname}:{parsed.port}" if parsed.port else parsed.hostname
        return BookerClientError(
            message=f"Cannot reach booking service at {host_port}",
            data={"url": url, "original_error": str(error)},
        )

    return BookerClientError(
        message=f"Transport error for {url}: {error}",
        data={"url": url, "original_error": str(error)},
    )
