"""Auth header providers."""

from typing import Protocol


class AuthHeaderProvider(Protocol):
    """Supplies request headers carrying credentials."""

    def headers(self) -> dict[str, str] | None:
        """Return auth headers, or None when no credentials are available."""
        ...


def bearer_headers(access_token: str) -> dict[str, str]:
    """Build the Authorization header for a bearer token."""
    return {"Authorization": f"Bearer {access_token}"}


class StaticTokenProvider:
    """Provider for an access token obtained elsewhere."""

    def __init__(self, access_token: str | None) -> None:
        self._access_token = access_token

    def headers(self) -> dict[str, str] | None:
        """Return bearer headers for the configured token, if any."""
        if not self._access_token:
            return None
        return bearer_headers(self._access_token)
