"""Observability module for logging."""

from basecamp_fetch.observability.logging import (
    bind_command_context,
    configure_logging,
    redact_header_fields,
)


__all__ = [
    "bind_command_context",
    "configure_logging",
    "redact_header_fields",
]
