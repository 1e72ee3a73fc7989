"""HTTP client returning normalized responses."""

import ssl
import time
from collections.abc import Iterator
from contextlib import contextmanager

import httpx
import structlog

from basecamp_fetch.fetch.config import FetchConfig
from basecamp_fetch.fetch.errors import TransientFetchError
from basecamp_fetch.fetch.metrics import FetchMetrics
from basecamp_fetch.fetch.models import FetchErrorClass, HttpResponse
from basecamp_fetch.fetch.redact import redact_headers, redact_url


logger = structlog.get_logger()


class HttpFetcher:
    """Blocking HTTP GET client.

    Returns every response regardless of status code and converts
    transport-level failures into TransientFetchError so a retry wrapper
    can decide what to do with them.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP fetcher.

        Args:
            config: Fetch configuration.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._config = config or FetchConfig()
        self._transport = transport
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch", subcomponent="client")

    @property
    def config(self) -> FetchConfig:
        """Fetch configuration in use."""
        return self._config

    def build_headers(self, extra_headers: dict[str, str] | None) -> dict[str, str]:
        """Merge caller headers over the default headers.

        Args:
            extra_headers: Headers supplied by the caller.

        Returns:
            Complete headers dictionary.
        """
        headers = self._config.default_headers()
        if extra_headers:
            lowered = {key.lower() for key in extra_headers}
            headers = {k: v for k, v in headers.items() if k.lower() not in lowered}
            headers.update(extra_headers)
        return headers

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._config.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        )

    def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        """Perform a GET request.

        Args:
            url: URL to fetch.
            headers: Additional request headers.

        Returns:
            Normalized response for any status code.

        Raises:
            TransientFetchError: On network, timeout or TLS failure.
        """
        request_headers = self.build_headers(headers)
        log = self._log.bind(url=redact_url(url))
        log.debug("http_get", headers=redact_headers(request_headers))

        start_ns = time.perf_counter_ns()
        try:
            with self._client() as client:
                response = client.get(url, headers=request_headers)
        except httpx.HTTPError as exc:
            raise self._to_transient(exc, log) from exc

        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_request(
            response.status_code, len(response.content), duration_ms
        )
        log.debug(
            "http_response",
            status_code=response.status_code,
            bytes=len(response.content),
            duration_ms=round(duration_ms, 2),
        )

        return HttpResponse(
            status_code=response.status_code,
            url=str(response.url),
            headers=dict(response.headers),
            body_bytes=response.content,
        )

    @contextmanager
    def stream(
        self, url: str, headers: dict[str, str] | None = None
    ) -> Iterator[httpx.Response]:
        """Open a streaming GET request.

        The body is not read; callers iterate it with iter_bytes().

        Args:
            url: URL to fetch.
            headers: Additional request headers.

        Yields:
            The open httpx response.

        Raises:
            TransientFetchError: On network, timeout or TLS failure.
        """
        request_headers = self.build_headers(headers)
        log = self._log.bind(url=redact_url(url))
        log.debug("http_stream", headers=redact_headers(request_headers))

        try:
            with self._client() as client, client.stream(
                "GET", url, headers=request_headers
            ) as response:
                self._metrics.record_request(response.status_code, 0, 0.0)
                yield response
        except httpx.HTTPError as exc:
            raise self._to_transient(exc, log) from exc

    def _to_transient(
        self,
        exc: httpx.HTTPError,
        log: structlog.stdlib.BoundLogger,
    ) -> TransientFetchError:
        """Classify a transport failure.

        Args:
            exc: Exception raised by httpx.
            log: Bound logger.

        Returns:
            TransientFetchError describing the failure.
        """
        if isinstance(exc, httpx.TimeoutException):
            error_class = FetchErrorClass.NETWORK_TIMEOUT
            message = f"Request timed out: {exc}"
        elif isinstance(exc, httpx.ConnectError) and _is_ssl_failure(exc):
            error_class = FetchErrorClass.SSL_ERROR
            message = f"TLS handshake failed: {exc}"
        elif isinstance(exc, httpx.ConnectError):
            error_class = FetchErrorClass.CONNECTION_ERROR
            message = f"Connection failed: {exc}"
        else:
            error_class = FetchErrorClass.UNKNOWN
            message = f"Unexpected transport error: {exc}"

        self._metrics.record_failure(error_class)
        log.warning("http_transport_error", error_class=error_class.value, error=str(exc))
        return TransientFetchError(error_class, message)


def _is_ssl_failure(exc: BaseException) -> bool:
    """Check whether an exception chain contains an SSL error."""
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, ssl.SSLError):
            return True
        current = current.__cause__ or current.__context__
    return False
