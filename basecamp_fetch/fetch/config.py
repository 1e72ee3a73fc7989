"""Configuration models for the HTTP fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from basecamp_fetch.fetch.constants import (
    DEFAULT_MAX_DOWNLOAD_SIZE_BYTES,
    DEFAULT_RETRY_AFTER_SECONDS,
)
from basecamp_fetch.fetch.models import RetryPolicy


class FetchConfig(BaseModel):
    """Configuration for the HTTP fetch layer.

    Central configuration for timeouts, retry policy, rate-limit waits and
    download limits.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        "basecamp-fetch/1.0"
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = 30.0
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    default_retry_after_seconds: Annotated[int, Field(ge=0, le=3600)] = (
        DEFAULT_RETRY_AFTER_SECONDS
    )
    # None waits as long as the server asks
    max_retry_after_seconds: Annotated[int, Field(ge=1)] | None = None
    max_download_size_bytes: Annotated[
        int, Field(ge=1024, le=1024 * 1024 * 1024)
    ] = DEFAULT_MAX_DOWNLOAD_SIZE_BYTES

    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request unless the caller overrides them.

        Returns:
            Dictionary of headers.
        """
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }
