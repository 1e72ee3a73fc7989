"""Paginated JSON fetching with rate-limit and retry handling."""

import json
import time
from typing import Any
from urllib.parse import urljoin

import structlog

from basecamp_fetch.debug.sink import DebugSink, NullDebugSink
from basecamp_fetch.fetch.cancellation import (
    CancellationToken,
    SleepFn,
    cancellable_sleep,
)
from basecamp_fetch.fetch.client import HttpFetcher
from basecamp_fetch.fetch.constants import (
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    MAX_ERROR_BODY_CHARS,
)
from basecamp_fetch.fetch.errors import FetchFatalError, TransientFetchError
from basecamp_fetch.fetch.links import next_page_url
from basecamp_fetch.fetch.metrics import FetchMetrics
from basecamp_fetch.fetch.models import FetchErrorClass, HttpResponse
from basecamp_fetch.fetch.redact import redact_url
from basecamp_fetch.fetch.retry import with_retries


logger = structlog.get_logger()


class Paginator:
    """Fetches JSON resources, following Link: rel="next" pagination.

    Per page:
    - 429 waits for Retry-After and repeats the page outside the retry budget
    - 404 and blank bodies end the fetch with an empty result
    - 5xx and network failures are retried with exponential backoff
    - any other non-2xx status is fatal
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        token: CancellationToken | None = None,
        debug_sink: DebugSink | None = None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        """Initialize the paginator.

        Args:
            fetcher: HTTP fetcher used for every request.
            token: Cancellation token polled between requests and sleeps.
            debug_sink: Receives each decoded page; NullDebugSink if omitted.
            sleep: Sleep function (injectable for tests).
        """
        self._fetcher = fetcher
        self._config = fetcher.config
        self._token = token
        self._debug_sink = debug_sink or NullDebugSink()
        self._sleep = sleep
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch", subcomponent="paginator")

    def load_json(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> list[Any] | Any:
        """Fetch a JSON resource and every page that follows it.

        Args:
            url: URL of the first page.
            headers: Request headers (typically Authorization).

        Returns:
            All items of every page in fetch order, the decoded value itself
            when the resource is not a list, or an empty list for 404 and
            empty responses.

        Raises:
            FetchFatalError: On unexpected status, invalid JSON or exhausted
                retries.
            OperationCancelledError: If cancellation is observed.
        """
        request_headers = dict(headers or {})
        items: list[Any] = []
        visited: set[str] = set()
        log = self._log.bind(start_url=redact_url(url))
        log.debug("load_json_start")

        while True:
            page_log = log.bind(url=redact_url(url))
            visited.add(url)
            response = self._fetch_page(url, request_headers)

            if response.status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
                self._wait_for_rate_limit(response, page_log)
                continue

            if response.status_code == HTTP_STATUS_NOT_FOUND:
                page_log.warning("not_found", status_code=response.status_code)
                return []

            if not response.is_success:
                body = response.text[:MAX_ERROR_BODY_CHARS]
                self._metrics.record_failure(FetchErrorClass.HTTP_4XX)
                page_log.error(
                    "fetch_failed", status_code=response.status_code, body=body
                )
                msg = (
                    f"GET failed:\nURL: {redact_url(url)}\n"
                    f"Status: {response.status_code}\nBody:\n{body}"
                )
                raise FetchFatalError(
                    msg,
                    url=redact_url(url),
                    status_code=response.status_code,
                    body=body,
                )

            if not response.text.strip():
                page_log.warning("empty_body", status_code=response.status_code)
                return []

            page_data = self._decode(response, url)
            self._record_page(url, page_data, page_log)

            if not isinstance(page_data, list):
                return page_data
            items.extend(page_data)

            next_url = next_page_url(response.link)
            if next_url is None:
                break
            next_url = urljoin(response.url, next_url)
            if next_url in visited:
                page_log.warning("pagination_loop_detected", next_url=redact_url(next_url))
                break
            url = next_url

        log.debug("load_json_complete", items=len(items))
        return items

    def _fetch_page(self, url: str, headers: dict[str, str]) -> HttpResponse:
        """Fetch one page with bounded retries for transient failures.

        Args:
            url: Page URL.
            headers: Request headers.

        Returns:
            Response with a non-5xx status.
        """

        def attempt() -> HttpResponse:
            response = self._fetcher.get(url, headers)
            if (
                HTTP_STATUS_SERVER_ERROR_MIN
                <= response.status_code
                < HTTP_STATUS_SERVER_ERROR_MAX
            ):
                self._metrics.record_failure(FetchErrorClass.HTTP_5XX)
                raise TransientFetchError(
                    FetchErrorClass.HTTP_5XX,
                    f"Server error ({response.status_code})",
                    status_code=response.status_code,
                )
            return response

        policy = self._config.retry_policy
        return with_retries(
            attempt,
            policy.max_attempts,
            token=self._token,
            sleep=self._sleep,
            backoff_base=policy.backoff_base,
        )

    def _wait_for_rate_limit(
        self,
        response: HttpResponse,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """Sleep for the advertised Retry-After, polling for cancellation.

        Args:
            response: The 429 response.
            log: Bound logger.
        """
        wait = self._parse_retry_after(response.retry_after)
        self._metrics.record_rate_limited()
        log.warning("rate_limited", retry_after=wait)
        if self._token is not None:
            self._token.raise_if_cancelled("Cancelled before rate-limit wait")
        cancellable_sleep(
            wait, self._token, self._sleep, message="Cancelled during rate-limit wait"
        )

    def _parse_retry_after(self, value: str | None) -> int:
        """Parse a Retry-After header as integer seconds.

        Args:
            value: Raw header value.

        Returns:
            Seconds to wait, defaulting when absent or unparseable.
        """
        default = self._config.default_retry_after_seconds
        if value is None:
            return default
        try:
            seconds = int(value.strip())
        except ValueError:
            return default
        if seconds < 0:
            return default
        cap = self._config.max_retry_after_seconds
        return seconds if cap is None else min(seconds, cap)

    def _decode(self, response: HttpResponse, url: str) -> Any:
        """Decode a JSON body.

        Raises:
            FetchFatalError: If the body is not valid JSON.
        """
        try:
            return json.loads(response.body_bytes)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._metrics.record_failure(FetchErrorClass.INVALID_PAYLOAD)
            msg = f"Invalid JSON from {redact_url(url)}: {exc}"
            raise FetchFatalError(
                msg,
                url=redact_url(url),
                status_code=response.status_code,
                body=response.text[:MAX_ERROR_BODY_CHARS],
            ) from exc

    def _record_page(
        self,
        url: str,
        page_data: Any,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """Log a decoded page and hand it to the debug sink.

        Args:
            url: Page URL.
            page_data: Decoded JSON value.
            log: Bound logger.
        """
        self._metrics.record_page()
        pretty_json = json.dumps(page_data, indent=2, ensure_ascii=False)
        item_count = len(page_data) if isinstance(page_data, list) else 1
        log.debug("page_fetched", items=item_count, payload=pretty_json)

        try:
            self._debug_sink.write(url, pretty_json)
        except Exception as exc:  # noqa: BLE001
            log.warning("debug_sink_failed", error_type=type(exc).__name__, error=str(exc))
