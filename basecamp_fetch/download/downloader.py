"""Authenticated downloads of privately hosted assets."""

import tempfile
from typing import IO

import httpx
import structlog

from basecamp_fetch.auth.provider import AuthHeaderProvider
from basecamp_fetch.download.cookies import DriverSession, build_cookie_header
from basecamp_fetch.download.errors import (
    DownloadSizeExceededError,
    NoAuthAvailableError,
)
from basecamp_fetch.download.models import DownloadResult
from basecamp_fetch.fetch.client import HttpFetcher
from basecamp_fetch.fetch.constants import DEFAULT_CHUNK_SIZE, DOWNLOAD_SPOOL_SIZE_BYTES
from basecamp_fetch.fetch.metrics import FetchMetrics
from basecamp_fetch.fetch.redact import redact_url


logger = structlog.get_logger()


class AssetDownloader:
    """Downloads binary assets with bearer or cookie authentication.

    Failures are reported as NOT_AVAILABLE results rather than exceptions.
    The only exception raised is NoAuthAvailableError, when bearer auth is
    requested but no credentials exist at all.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        auth_provider: AuthHeaderProvider | None = None,
    ) -> None:
        """Initialize the downloader.

        Args:
            fetcher: HTTP fetcher used for the download.
            auth_provider: Source of bearer headers for download_with_auth.
        """
        self._fetcher = fetcher
        self._auth_provider = auth_provider
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="download")

    def download_with_auth(self, url: str) -> DownloadResult:
        """Download an asset using bearer-token headers.

        Args:
            url: Asset URL.

        Returns:
            OK with the body stream, or NOT_AVAILABLE with a reason.

        Raises:
            NoAuthAvailableError: If the provider yields no headers.
        """
        log = self._log.bind(url=redact_url(url), strategy="bearer")
        headers = self._resolve_auth_headers(log)
        if not headers:
            log.error("no_auth_available")
            msg = f"No auth headers available to download {redact_url(url)}"
            raise NoAuthAvailableError(msg)

        return self._download(url, headers, log)

    def download_with_driver_cookies(
        self,
        url: str,
        driver_session: DriverSession | None,
    ) -> DownloadResult:
        """Download an asset using cookies from a logged-in browser session.

        Args:
            url: Asset URL.
            driver_session: Browser automation session, if one is running.

        Returns:
            OK with the body stream, or NOT_AVAILABLE with a reason.
        """
        log = self._log.bind(url=redact_url(url), strategy="driver_cookies")
        if driver_session is None:
            log.debug("no_driver_session")
            return self._unavailable("No browser session")

        try:
            cookie_header = build_cookie_header(url, driver_session.get_cookies())
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "driver_cookies_unreadable",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return self._unavailable(f"Cannot read browser cookies: {exc}")

        if not cookie_header:
            log.debug("no_matching_cookies")
            return self._unavailable("No cookies match the asset host")

        return self._download(url, {"Cookie": cookie_header}, log)

    def _resolve_auth_headers(
        self, log: structlog.stdlib.BoundLogger
    ) -> dict[str, str] | None:
        """Ask the auth provider for headers, treating failures as none.

        Args:
            log: Bound logger.

        Returns:
            Auth headers, or None.
        """
        if self._auth_provider is None:
            return None
        try:
            return self._auth_provider.headers()
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "auth_provider_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None

    def _download(
        self,
        url: str,
        headers: dict[str, str],
        log: structlog.stdlib.BoundLogger,
    ) -> DownloadResult:
        """Perform one GET and copy the body into a temporary stream.

        Args:
            url: Asset URL.
            headers: Auth headers for the request.
            log: Bound logger.

        Returns:
            Download result.
        """
        request_headers = {**headers, "Accept": "*/*"}
        try:
            with self._fetcher.stream(url, request_headers) as response:
                if not response.is_success:
                    log.warning("download_http_error", status_code=response.status_code)
                    return self._unavailable(
                        f"HTTP {response.status_code}", response.status_code
                    )

                body = self._copy_body(response)
                content_type = response.headers.get("content-type")
                status_code = response.status_code
        except DownloadSizeExceededError as exc:
            log.warning("download_too_large", error=str(exc))
            return self._unavailable(str(exc))
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "download_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return self._unavailable(f"{type(exc).__name__}: {exc}")

        self._metrics.record_download(available=True)
        log.info("download_complete", content_type=content_type)
        return DownloadResult.ok(body, content_type, status_code)

    def _copy_body(self, response: httpx.Response) -> IO[bytes]:
        """Copy a response body into a rewound temporary file.

        Small bodies stay in memory; larger ones spill to disk.

        Raises:
            DownloadSizeExceededError: If the body exceeds the size limit.
        """
        max_size = self._fetcher.config.max_download_size_bytes
        buffer = tempfile.SpooledTemporaryFile(  # noqa: SIM115
            max_size=DOWNLOAD_SPOOL_SIZE_BYTES, mode="w+b"
        )
        total_read = 0
        try:
            for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
                total_read += len(chunk)
                if total_read > max_size:
                    msg = (
                        f"Download size exceeded limit of {max_size} bytes "
                        f"(read {total_read} bytes)"
                    )
                    raise DownloadSizeExceededError(msg)
                buffer.write(chunk)
        except BaseException:
            buffer.close()
            raise

        buffer.seek(0)
        return buffer

    def _unavailable(self, reason: str, status_code: int | None = None) -> DownloadResult:
        self._metrics.record_download(available=False)
        return DownloadResult.not_available(reason, status_code)
