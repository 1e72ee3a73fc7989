"""Basecamp (37signals Launchpad) OAuth2 web-server flow with token caching."""

import json
from collections.abc import Callable
from http import HTTPStatus
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from basecamp_fetch.auth.errors import AuthError
from basecamp_fetch.auth.provider import bearer_headers


logger = structlog.get_logger()

AUTHORIZATION_ENDPOINT = "https://launchpad.37signals.com/authorization/new"
TOKEN_ENDPOINT = "https://launchpad.37signals.com/authorization/token"  # noqa: S105

PromptFn = Callable[[str], str]


def build_authorization_url(client_id: str, redirect_uri: str) -> str:
    """Build the URL a user visits to authorize the integration.

    Args:
        client_id: OAuth client ID.
        redirect_uri: Registered redirect URI.

    Returns:
        Authorization URL.
    """
    query = urlencode(
        {"type": "web_server", "client_id": client_id, "redirect_uri": redirect_uri}
    )
    return f"{AUTHORIZATION_ENDPOINT}?{query}"


def exchange_code(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    timeout: float = 15.0,
) -> dict[str, Any]:
    """Exchange an authorization code for a token payload.

    Args:
        code: Verification code from the redirect URL.
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        redirect_uri: Registered redirect URI.
        timeout: Request timeout in seconds.

    Returns:
        Token payload containing at least access_token.

    Raises:
        AuthError: If the exchange fails.
    """
    log = logger.bind(component="auth", subcomponent="oauth")

    try:
        response = httpx.post(
            TOKEN_ENDPOINT,
            data={
                "type": "web_server",
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri,
                "code": code,
            },
            timeout=timeout,
        )
    except httpx.HTTPError as exc:
        log.warning("oauth_token_exchange_network_error", error=str(exc))
        msg = f"Network error during token exchange: {exc}"
        raise AuthError(msg) from exc

    if response.status_code != HTTPStatus.OK:
        log.warning("oauth_token_exchange_failed", status_code=response.status_code)
        msg = f"Token exchange failed with status {response.status_code}"
        raise AuthError(msg)

    try:
        payload: dict[str, Any] = response.json()
    except ValueError as exc:
        msg = "Token exchange returned invalid JSON"
        raise AuthError(msg) from exc

    if not payload.get("access_token"):
        msg = "No access_token in token exchange response"
        raise AuthError(msg)

    log.info("oauth_token_exchanged")
    return payload


class BasecampTokenProvider:
    """Bearer auth provider backed by an on-disk token cache.

    The first call without a cached token prints the authorization URL,
    reads the verification code through the prompt callable, exchanges it
    and writes the token payload to the cache file.
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str | None,
        token_path: Path,
        prompt: PromptFn = input,
    ) -> None:
        """Initialize the provider.

        Args:
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            redirect_uri: Registered redirect URI.
            token_path: Path of the cached token JSON file.
            prompt: Callable that shows a message and returns the user's answer.
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._token_path = token_path
        self._prompt = prompt
        self._log = logger.bind(component="auth", subcomponent="token_provider")

    @property
    def token_path(self) -> Path:
        """Path of the cached token file."""
        return self._token_path

    def headers(self) -> dict[str, str] | None:
        """Return bearer headers, authorizing first if needed.

        Raises:
            AuthError: If no token can be obtained.
        """
        return bearer_headers(self.access_token())

    def access_token(self) -> str:
        """Return the cached access token, authorizing first if needed.

        Raises:
            AuthError: If no token can be obtained.
        """
        if not self._token_path.exists():
            self.authorize()
        return self._load_cached_token()

    def authorize(self) -> dict[str, Any]:
        """Run the interactive web-server flow and cache the result.

        Returns:
            Token payload.

        Raises:
            AuthError: If credentials are missing or the exchange fails.
        """
        if not (self._client_id and self._client_secret and self._redirect_uri):
            msg = (
                "BASECAMP_CLIENT_ID, BASECAMP_CLIENT_SECRET and "
                "BASECAMP_REDIRECT_URI must be set to authorize"
            )
            raise AuthError(msg)

        url = build_authorization_url(self._client_id, self._redirect_uri)
        code = self._prompt(
            f"Visit to authorize Basecamp:\n{url}\n\nPaste the code from the redirect URL: "
        ).strip()
        if not code:
            msg = "No authorization code entered"
            raise AuthError(msg)

        payload = exchange_code(
            code, self._client_id, self._client_secret, self._redirect_uri
        )
        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        self._log.info("oauth_token_cached", path=str(self._token_path))
        return payload

    def _load_cached_token(self) -> str:
        """Read the access token from the cache file.

        Raises:
            AuthError: If the cache file is unreadable or has no token.
        """
        try:
            payload = json.loads(self._token_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"Cannot read cached token {self._token_path}: {exc}"
            raise AuthError(msg) from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            msg = f"No access_token in cached token {self._token_path}"
            raise AuthError(msg)
        return str(access_token)
