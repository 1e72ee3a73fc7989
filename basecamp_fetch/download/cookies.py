"""Cookie header construction from a browser driver's cookie jar."""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol
from urllib.parse import urlparse


class DriverSession(Protocol):
    """Browser automation session exposing its cookie jar.

    Selenium's WebDriver satisfies this protocol.
    """

    def get_cookies(self) -> list[dict[str, Any]]:
        """Return cookies as mappings with at least domain, name and value."""
        ...


def cookie_matches_host(cookie_domain: str, host: str) -> bool:
    """Check whether a cookie domain applies to a host.

    The leading dot of the cookie domain is ignored and the host must end
    with what remains.

    Args:
        cookie_domain: Domain attribute of the cookie.
        host: Host of the target URL.

    Returns:
        True if the cookie should be sent to the host.
    """
    domain = cookie_domain.lower().removeprefix(".")
    return bool(domain) and host.lower().endswith(domain)


def build_cookie_header(url: str, cookies: Iterable[Mapping[str, Any]]) -> str:
    """Build a Cookie header value for a URL.

    Args:
        url: Target URL.
        cookies: Cookie mappings with domain, name and value keys.

    Returns:
        "name=value" pairs joined by "; ", or an empty string when no cookie
        matches the URL's host.
    """
    host = urlparse(url).hostname or ""
    if not host:
        return ""

    pairs = [
        f"{cookie['name']}={cookie['value']}"
        for cookie in cookies
        if cookie.get("name") and cookie_matches_host(str(cookie.get("domain", "")), host)
    ]
    return "; ".join(pairs)
