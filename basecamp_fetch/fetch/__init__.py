"""HTTP fetch layer with pagination, retries, and cooperative cancellation.

This module provides:
- Normalized HTTP GET via httpx
- Bounded exponential backoff with cancellation checkpoints
- Link header pagination with 429 Retry-After handling
- Header and URL redaction for logging
- Metrics collection for observability
"""

from basecamp_fetch.fetch.cancellation import CancellationToken, cancellable_sleep
from basecamp_fetch.fetch.client import HttpFetcher
from basecamp_fetch.fetch.config import FetchConfig
from basecamp_fetch.fetch.constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_AFTER_SECONDS,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)
from basecamp_fetch.fetch.errors import (
    FetchFailure,
    FetchFatalError,
    OperationCancelledError,
    RetriesExhaustedError,
    TransientFetchError,
)
from basecamp_fetch.fetch.links import next_page_url, parse_link_header
from basecamp_fetch.fetch.metrics import FetchMetrics
from basecamp_fetch.fetch.models import FetchErrorClass, HttpResponse, RetryPolicy
from basecamp_fetch.fetch.paginator import Paginator
from basecamp_fetch.fetch.redact import redact_headers, redact_url
from basecamp_fetch.fetch.retry import with_retries


__all__ = [
    # Client
    "HttpFetcher",
    "Paginator",
    "with_retries",
    # Cancellation
    "CancellationToken",
    "cancellable_sleep",
    # Config
    "FetchConfig",
    # Models
    "HttpResponse",
    "FetchErrorClass",
    "RetryPolicy",
    # Errors
    "FetchFailure",
    "FetchFatalError",
    "OperationCancelledError",
    "RetriesExhaustedError",
    "TransientFetchError",
    # Links
    "parse_link_header",
    "next_page_url",
    # Constants
    "HTTP_STATUS_OK_MIN",
    "HTTP_STATUS_OK_MAX",
    "HTTP_STATUS_NOT_FOUND",
    "HTTP_STATUS_TOO_MANY_REQUESTS",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BACKOFF_BASE",
    "DEFAULT_RETRY_AFTER_SECONDS",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url",
]
