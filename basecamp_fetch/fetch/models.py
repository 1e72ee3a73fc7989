"""Data models for the HTTP fetch layer."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from basecamp_fetch.fetch.constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MAX_ATTEMPTS,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)


class FetchErrorClass(str, Enum):
    """Classification of fetch errors for metrics and retry decisions.

    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection
    - SSL_ERROR: SSL/TLS certificate or handshake error
    - HTTP_4XX: Non-retryable 4xx client error (except 404 and 429)
    - HTTP_5XX: Retryable 5xx server error
    - INVALID_PAYLOAD: Body could not be decoded as JSON
    - UNKNOWN: Unclassified error
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    SSL_ERROR = "SSL_ERROR"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    UNKNOWN = "UNKNOWN"


class HttpResponse(BaseModel):
    """Normalized HTTP response.

    Carries the response regardless of status code; interpreting the status
    is left to the caller.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=100, le=599, description="HTTP status code")
    url: Annotated[str, Field(min_length=1, description="Final URL after redirects")]
    headers: dict[str, str] = Field(
        default_factory=dict, description="Response headers"
    )
    body_bytes: bytes = Field(default=b"", description="Response body")

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def text(self) -> str:
        """Decode the body as UTF-8, replacing invalid sequences."""
        return self.body_bytes.decode("utf-8", errors="replace")

    def get_header(self, name: str) -> str | None:
        """Look up a header value case-insensitively.

        Args:
            name: Header name.

        Returns:
            Header value, or None if absent.
        """
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def retry_after(self) -> str | None:
        """Raw Retry-After header value."""
        return self.get_header("retry-after")

    @property
    def link(self) -> str | None:
        """Raw Link header value."""
        return self.get_header("link")


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    The delay before retry number n (1-based) is backoff_base ** n seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: Annotated[int, Field(ge=1, le=20)] = DEFAULT_MAX_ATTEMPTS
    backoff_base: Annotated[int, Field(ge=1, le=10)] = DEFAULT_BACKOFF_BASE

