"""OAuth authorization and auth header providers."""

from basecamp_fetch.auth.errors import AuthError
from basecamp_fetch.auth.oauth import (
    BasecampTokenProvider,
    build_authorization_url,
    exchange_code,
)
from basecamp_fetch.auth.provider import (
    AuthHeaderProvider,
    StaticTokenProvider,
    bearer_headers,
)


__all__ = [
    "AuthError",
    "AuthHeaderProvider",
    "BasecampTokenProvider",
    "StaticTokenProvider",
    "bearer_headers",
    "build_authorization_url",
    "exchange_code",
]
