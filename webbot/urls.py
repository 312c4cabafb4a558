"""URL validation helpers."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlparse

WEB_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}


def is_valid_web_uri(value: Optional[str]) -> bool:
    """Return True if *value* is an absolute http(s) URI with a host."""
    if not value or not isinstance(value, str):
        return False
    if value != value.strip() or any(ch.isspace() for ch in value):
        return False

    try:
        parsed = urlparse(value)
        # .port raises ValueError on a malformed authority
        _ = parsed.port
    except ValueError:
        return False

    if parsed.scheme.lower() not in WEB_SCHEMES:
        return False
    return bool(parsed.hostname)


def default_port(url: str) -> int:
    """Return the explicit port of *url*, else the scheme default."""
    parsed = urlparse(url)
    if parsed.port:
        return parsed.port
    return DEFAULT_PORTS.get(parsed.scheme.lower(), 80)


def resolve_href(href: str, base_url: Optional[str]) -> Optional[str]:
    """Resolve *href* against *base_url* and return it if it is a web URI.

    Without a base, only hrefs that are already absolute web URIs survive.
    """
    if not href:
        return None
    candidate = urljoin(base_url, href) if base_url else href
    return candidate if is_valid_web_uri(candidate) else None
