"""
Remediation recommendations for offending cookies.

Maps the set of offending cookie names for a site to a short,
human-readable fix.  Google Analytics cookies get GA/gtag-specific
guidance; everything else gets generic subdomain-scoping guidance.
"""

from __future__ import annotations

from collections.abc import Iterable

from cookie_audit.analysis import tracker_patterns
from cookie_audit.utils import url as url_mod

NO_ACTION = "No action needed"


def _is_ga_cookie(name: str) -> bool:
    return name.startswith(tracker_patterns.GA_NAME_PREFIXES) or name in tracker_patterns.GA_NAME_LITERALS


def remediate(
    offending_names: Iterable[str],
    site_url: str,
    root_domain: str = tracker_patterns.DEFAULT_ROOT_DOMAIN,
) -> str:
    """Return the fix recommendation for a site's offending cookies.

    Args:
        offending_names: Names of the offending cookies found on the site.
        site_url: The audited site URL; its host is named in the text.
        root_domain: The institution-wide domain cookies leak onto.

    Raises:
        MalformedUrlError: If *site_url* has no parseable host.
    """
    host = url_mod.extract_host(site_url)
    names = set(offending_names)
    root = root_domain.lstrip(".")

    if not names:
        return NO_ACTION
    if any(_is_ga_cookie(name) for name in names):
        return (
            f"Update GA/gtag cookie scope: set cookie_domain to {host} in your GA4 Configuration tag (GTM) "
            f"or gtag config, remove legacy UA tags or GA Settings that force cookieDomain=.{root}, "
            "publish, then verify with CookieCutter"
        )
    return (
        f"Scope cookies to subdomain {host}: audit GTM/gtag or app code to avoid setting cookies on .{root}, "
        "publish changes, then verify with CookieCutter"
    )
