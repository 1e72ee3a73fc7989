"""Result types for asset downloads."""

from dataclasses import dataclass
from enum import Enum
from typing import IO


class DownloadStatus(str, Enum):
    """Outcome of a download attempt.

    - OK: The asset body is available as a stream
    - NOT_AVAILABLE: The asset could not be fetched; see reason
    """

    OK = "OK"
    NOT_AVAILABLE = "NOT_AVAILABLE"


@dataclass(frozen=True)
class DownloadResult:
    """Result of an asset download.

    Attributes:
        status: Whether the asset was obtained.
        stream: Rewound binary stream with the body (OK only).
        content_type: Content-Type of the response (OK only).
        reason: Why the asset is unavailable (NOT_AVAILABLE only).
        status_code: HTTP status code when a response was received.
    """

    status: DownloadStatus
    stream: IO[bytes] | None = None
    content_type: str | None = None
    reason: str | None = None
    status_code: int | None = None

    @classmethod
    def ok(
        cls,
        stream: IO[bytes],
        content_type: str | None,
        status_code: int | None = None,
    ) -> "DownloadResult":
        """Create a successful result."""
        return cls(
            status=DownloadStatus.OK,
            stream=stream,
            content_type=content_type or "application/octet-stream",
            status_code=status_code,
        )

    @classmethod
    def not_available(
        cls, reason: str, status_code: int | None = None
    ) -> "DownloadResult":
        """Create a result for an asset that could not be fetched."""
        return cls(
            status=DownloadStatus.NOT_AVAILABLE,
            reason=reason,
            status_code=status_code,
        )

    @property
    def is_ok(self) -> bool:
        """Check if the asset was obtained."""
        return self.status == DownloadStatus.OK
