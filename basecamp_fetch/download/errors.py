"""Error types for the asset downloader."""


class NoAuthAvailableError(Exception):
    """Raised when no auth headers can be obtained for an authenticated download."""


class DownloadSizeExceededError(Exception):
    """Raised when a download body exceeds the configured limit."""
