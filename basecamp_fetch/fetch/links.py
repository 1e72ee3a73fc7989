"""Parsing of RFC 8288 (formerly RFC 5988) Link headers."""

import re


_LINK_PATTERN = re.compile(r"<(?P<url>[^>]*)>(?P<params>[^<]*)")
_PARAM_PATTERN = re.compile(
    r';\s*(?P<key>[A-Za-z0-9!#$&+.^_`|~-]+)\s*(?:=\s*(?:"(?P<quoted>[^"]*)"|(?P<token>[^;,\s]+)))?'
)


def parse_link_header(value: str | None) -> dict[str, str]:
    """Parse a Link header into a mapping of relation type to URL.

    A link whose rel parameter lists several relation types is registered
    under each of them. When two links share a relation, the first wins.
    Relation types are lower-cased.

    Args:
        value: Raw Link header value.

    Returns:
        Mapping such as {"next": "https://...", "prev": "https://..."}.
    """
    links: dict[str, str] = {}
    if not value:
        return links

    for match in _LINK_PATTERN.finditer(value):
        url = match.group("url").strip()
        if not url:
            continue
        for param in _PARAM_PATTERN.finditer(match.group("params")):
            if param.group("key").lower() != "rel":
                continue
            rel_value = param.group("quoted") or param.group("token") or ""
            for rel in rel_value.split():
                links.setdefault(rel.lower(), url)
    return links


def next_page_url(value: str | None) -> str | None:
    """Return the rel="next" URL of a Link header, if any."""
    return parse_link_header(value).get("next")
