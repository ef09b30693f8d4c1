"""
URL helpers for site normalization and host extraction.
"""

from __future__ import annotations

import re
from urllib import parse

from cookie_audit.utils import errors

_SCHEME_RE = re.compile(r"\Ahttps?://", re.I)

DEFAULT_SCHEME = "https"


def normalize_url(raw: str) -> str:
    """Prefix the default secure scheme when *raw* has none."""
    if _SCHEME_RE.match(raw):
        return raw
    return f"{DEFAULT_SCHEME}://{raw}"


def extract_host(url: str) -> str:
    """Extract the host from a URL string, keeping its original case.

    Raises:
        MalformedUrlError: If the URL cannot be parsed or has no host.
    """
    try:
        parsed = parse.urlparse(url)
        hostname = parsed.hostname
        parsed.port  # noqa: B018  (raises on an invalid port)
    except ValueError as exc:
        raise errors.MalformedUrlError(f"Cannot parse URL {url!r}: {exc}") from exc
    if not hostname:
        raise errors.MalformedUrlError(f"URL has no host: {url!r}")

    host = parsed.netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[: host.index("]") + 1]
    return host.partition(":")[0]
