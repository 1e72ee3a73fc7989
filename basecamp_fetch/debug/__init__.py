"""Debug payload sinks."""

from basecamp_fetch.debug.sink import (
    DebugSink,
    FileDebugSink,
    NullDebugSink,
    safe_filename_for_url,
)


__all__ = [
    "DebugSink",
    "FileDebugSink",
    "NullDebugSink",
    "safe_filename_for_url",
]
