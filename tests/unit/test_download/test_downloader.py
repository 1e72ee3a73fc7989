"""Unit tests for the authenticated asset downloader."""

from typing import Any

import httpx
import pytest

from basecamp_fetch.auth.provider import StaticTokenProvider
from basecamp_fetch.download.downloader import AssetDownloader
from basecamp_fetch.download.errors import NoAuthAvailableError
from basecamp_fetch.download.models import DownloadStatus
from basecamp_fetch.fetch.client import HttpFetcher
from basecamp_fetch.fetch.config import FetchConfig
from basecamp_fetch.fetch.metrics import FetchMetrics
from tests.helpers.transport import SequenceTransport


ASSET_URL = "https://storage.3.basecamp.com/999/blobs/abc/download/report.pdf"


class FakeDriver:
    """Browser session double returning a fixed cookie jar."""

    def __init__(self, cookies: list[dict[str, Any]] | Exception) -> None:
        self._cookies = cookies

    def get_cookies(self) -> list[dict[str, Any]]:
        if isinstance(self._cookies, Exception):
            raise self._cookies
        return self._cookies


class RaisingProvider:
    """Auth provider whose lookup fails."""

    def headers(self) -> dict[str, str] | None:
        msg = "token cache unreadable"
        raise RuntimeError(msg)


def make_downloader(
    transport: httpx.BaseTransport,
    provider: Any = None,
    config: FetchConfig | None = None,
) -> AssetDownloader:
    """Create a downloader over a mock transport."""
    fetcher = HttpFetcher(config or FetchConfig(), transport=transport)
    return AssetDownloader(fetcher, auth_provider=provider)


class TestDownloadWithAuth:
    """Tests for bearer-authenticated downloads."""

    def setup_method(self) -> None:
        """Reset metrics before each test."""
        FetchMetrics.reset()

    def test_ok_returns_stream(self) -> None:
        """Test that a 200 yields the body and content type."""
        transport = SequenceTransport(
            [
                httpx.Response(
                    200,
                    content=b"%PDF-1.7 body",
                    headers={"Content-Type": "application/pdf"},
                )
            ]
        )
        downloader = make_downloader(transport, StaticTokenProvider("abc"))

        result = downloader.download_with_auth(ASSET_URL)

        assert result.status == DownloadStatus.OK
        assert result.is_ok
        assert result.content_type == "application/pdf"
        assert result.stream is not None
        assert result.stream.read() == b"%PDF-1.7 body"
        assert transport.requests[0].headers["Authorization"] == "Bearer abc"
        assert transport.requests[0].headers["Accept"] == "*/*"
        assert FetchMetrics.get_instance().downloads_total == 1

    def test_missing_content_type_defaults(self) -> None:
        """Test the octet-stream default for responses without a type."""
        transport = SequenceTransport([httpx.Response(200, content=b"\x00\x01")])
        downloader = make_downloader(transport, StaticTokenProvider("abc"))

        result = downloader.download_with_auth(ASSET_URL)

        assert result.content_type == "application/octet-stream"

    @pytest.mark.parametrize("status_code", [401, 403, 404, 500])
    def test_http_error_not_available(self, status_code: int) -> None:
        """Test that a non-2xx status is NOT_AVAILABLE without retries."""
        transport = SequenceTransport([httpx.Response(status_code, text="denied")])
        downloader = make_downloader(transport, StaticTokenProvider("abc"))

        result = downloader.download_with_auth(ASSET_URL)

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert result.stream is None
        assert result.status_code == status_code
        assert result.reason == f"HTTP {status_code}"
        assert len(transport.requests) == 1
        assert FetchMetrics.get_instance().downloads_unavailable_total == 1

    def test_transport_error_not_available(self) -> None:
        """Test that a network failure is NOT_AVAILABLE."""
        transport = SequenceTransport([httpx.ConnectError("refused")])
        downloader = make_downloader(transport, StaticTokenProvider("abc"))

        result = downloader.download_with_auth(ASSET_URL)

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert result.status_code is None
        assert "refused" in (result.reason or "")

    def test_body_over_limit_not_available(self) -> None:
        """Test that oversized bodies are rejected."""
        transport = SequenceTransport([httpx.Response(200, content=b"x" * 4096)])
        config = FetchConfig(max_download_size_bytes=1024)
        downloader = make_downloader(transport, StaticTokenProvider("abc"), config)

        result = downloader.download_with_auth(ASSET_URL)

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert "limit of 1024 bytes" in (result.reason or "")

    def test_no_provider_raises(self) -> None:
        """Test that missing credentials raise instead of returning a result."""
        transport = SequenceTransport([httpx.Response(200)])
        downloader = make_downloader(transport)

        with pytest.raises(NoAuthAvailableError):
            downloader.download_with_auth(ASSET_URL)

        assert transport.requests == []

    def test_empty_token_raises(self) -> None:
        """Test that a provider returning no headers raises."""
        downloader = make_downloader(
            SequenceTransport([httpx.Response(200)]), StaticTokenProvider(None)
        )

        with pytest.raises(NoAuthAvailableError):
            downloader.download_with_auth(ASSET_URL)

    def test_failing_provider_raises(self) -> None:
        """Test that a provider error is treated as no credentials."""
        downloader = make_downloader(
            SequenceTransport([httpx.Response(200)]), RaisingProvider()
        )

        with pytest.raises(NoAuthAvailableError):
            downloader.download_with_auth(ASSET_URL)


class TestDownloadWithDriverCookies:
    """Tests for cookie-authenticated downloads."""

    def setup_method(self) -> None:
        """Reset metrics before each test."""
        FetchMetrics.reset()

    def test_no_session_not_available(self) -> None:
        """Test that a missing browser session is NOT_AVAILABLE."""
        transport = SequenceTransport([httpx.Response(200)])
        downloader = make_downloader(transport)

        result = downloader.download_with_driver_cookies(ASSET_URL, None)

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert transport.requests == []

    def test_no_matching_cookies_not_available(self) -> None:
        """Test that cookies for other hosts are not sent."""
        transport = SequenceTransport([httpx.Response(200)])
        driver = FakeDriver([{"domain": ".example.org", "name": "sid", "value": "1"}])

        result = make_downloader(transport).download_with_driver_cookies(
            ASSET_URL, driver
        )

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert transport.requests == []

    def test_sends_matching_cookies(self) -> None:
        """Test that matching cookies are sent as one Cookie header."""
        transport = SequenceTransport(
            [httpx.Response(200, content=b"img", headers={"Content-Type": "image/png"})]
        )
        driver = FakeDriver(
            [
                {"domain": ".basecamp.com", "name": "session_token", "value": "t1"},
                {"domain": "storage.3.basecamp.com", "name": "bc3", "value": "t2"},
                {"domain": "launchpad.37signals.com", "name": "lp", "value": "t3"},
            ]
        )

        result = make_downloader(transport).download_with_driver_cookies(
            ASSET_URL, driver
        )

        assert result.is_ok
        assert result.content_type == "image/png"
        assert result.stream is not None
        assert result.stream.read() == b"img"
        sent = transport.requests[0].headers
        assert sent["Cookie"] == "session_token=t1; bc3=t2"
        assert "Authorization" not in sent

    def test_http_error_not_available(self) -> None:
        """Test that an expired session is NOT_AVAILABLE."""
        transport = SequenceTransport([httpx.Response(403)])
        driver = FakeDriver([{"domain": "basecamp.com", "name": "sid", "value": "1"}])

        result = make_downloader(transport).download_with_driver_cookies(
            ASSET_URL, driver
        )

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert result.status_code == 403

    def test_unreadable_cookies_not_available(self) -> None:
        """Test that a crashed browser session is NOT_AVAILABLE."""
        transport = SequenceTransport([httpx.Response(200)])
        driver = FakeDriver(RuntimeError("session deleted"))

        result = make_downloader(transport).download_with_driver_cookies(
            ASSET_URL, driver
        )

        assert result.status == DownloadStatus.NOT_AVAILABLE
        assert "session deleted" in (result.reason or "")
        assert transport.requests == []
