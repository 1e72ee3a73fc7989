"""Debug sinks for raw API payloads."""

import re
from pathlib import Path
from typing import Protocol

import structlog


logger = structlog.get_logger()

PAYLOAD_FILE_PREFIX = "basecamp_api_payload_"

_UNSAFE_CHARS = re.compile(r"[^0-9A-Za-z.\-]")


class DebugSink(Protocol):
    """Destination for pretty-printed API payloads."""

    def write(self, url: str, pretty_json: str) -> None:
        """Persist a payload fetched from a URL.

        Args:
            url: URL the payload came from.
            pretty_json: Pretty-printed JSON text.
        """
        ...


def safe_filename_for_url(url: str) -> str:
    """Encode a URL as a filesystem-safe name.

    Every character outside [0-9A-Za-z.-] becomes an underscore.

    Args:
        url: URL to encode.

    Returns:
        Filesystem-safe string.
    """
    return _UNSAFE_CHARS.sub("_", url)


class NullDebugSink:
    """Debug sink that discards payloads."""

    def write(self, url: str, pretty_json: str) -> None:  # noqa: ARG002
        """Discard the payload."""


class FileDebugSink:
    """Writes each payload to its own file under a dump directory."""

    def __init__(self, directory: Path) -> None:
        """Initialize the sink.

        Args:
            directory: Directory receiving payload files.
        """
        self._directory = directory
        self._log = logger.bind(component="debug", subcomponent="sink")

    def path_for(self, url: str) -> Path:
        """Get the file path used for a URL."""
        return self._directory / f"{PAYLOAD_FILE_PREFIX}{safe_filename_for_url(url)}.json"

    def write(self, url: str, pretty_json: str) -> None:
        """Write the payload, overwriting any earlier dump of the same URL.

        Args:
            url: URL the payload came from.
            pretty_json: Pretty-printed JSON text.
        """
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(url)
        path.write_text(pretty_json, encoding="utf-8")
        self._log.info("debug_payload_written", path=str(path))
