"""
Referrer source classification.

Key behaviors:
- Empty or "Direct" referrers stay "Direct"
- Known hosts map to a canonical source name (first matching rule wins)
- Unknown hosts pass through as the bare host, without a leading "www."
- Values with no parseable host pass through unchanged
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from .models import DIRECT_REFERRER

# --- Configuration ---


@dataclass(frozen=True)
class AttributionConfig:
    """
    Referrer host rules, checked in order.

    Each rule is (host substrings, exact hosts, source name). Twitter's "t.co"
    short links are matched exactly: as a substring it would also match
    "reddit.com".
    """

    source_rules: tuple[tuple[tuple[str, ...], tuple[str, ...], str], ...] = (
        (("google",), (), "Google"),
        (("twitter",), ("t.co",), "Twitter"),
        (("facebook",), (), "Facebook"),
        (("reddit",), (), "Reddit"),
        (("github",), (), "GitHub"),
        (("youtube",), (), "YouTube"),
    )


DEFAULT_CONFIG = AttributionConfig()


# --- Parsing Functions ---


def parse_host(url: str) -> str | None:
    """
    Extract the lowercase host of a URL, without port or leading "www.".

    Returns None when the value has no host (not an absolute URL).
    """
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None

    if not host:
        return None

    if host.startswith("www."):
        host = host[len("www.") :]
    return host or None


def classify_referrer_source(
    referrer: str | None,
    config: AttributionConfig = DEFAULT_CONFIG,
) -> str:
    """Normalize a raw referrer to a traffic source label."""
    if not referrer or referrer == DIRECT_REFERRER:
        return DIRECT_REFERRER

    host = parse_host(referrer)
    if host is None:
        return referrer

    for patterns, exact_hosts, source in config.source_rules:
        if host in exact_hosts or any(pattern in host for pattern in patterns):
            return source

    return host
