"""Authenticated downloads of privately hosted assets."""

from basecamp_fetch.download.cookies import (
    DriverSession,
    build_cookie_header,
    cookie_matches_host,
)
from basecamp_fetch.download.downloader import AssetDownloader
from basecamp_fetch.download.errors import (
    DownloadSizeExceededError,
    NoAuthAvailableError,
)
from basecamp_fetch.download.models import DownloadResult, DownloadStatus


__all__ = [
    "AssetDownloader",
    "DownloadResult",
    "DownloadSizeExceededError",
    "DownloadStatus",
    "DriverSession",
    "NoAuthAvailableError",
    "build_cookie_header",
    "cookie_matches_host",
]
