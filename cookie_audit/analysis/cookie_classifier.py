"""
Cookie classification against known tracking-service signatures.

A cookie is *offending* when it is scoped to the institution-wide
root domain (rather than a subdomain) and its name matches a known
tracker.  The classifier holds only immutable tables, so a single
instance can be shared by every worker without locking.
"""

from __future__ import annotations

import types
from collections.abc import Iterable, Mapping, Sequence

from cookie_audit.analysis import tracker_patterns
from cookie_audit.models import audit


class CookieClassifier:
    """Pure, read-only classifier for harvested cookies."""

    def __init__(
        self,
        root_domain: str = tracker_patterns.DEFAULT_ROOT_DOMAIN,
        literals: Mapping[str, str] = tracker_patterns.SUSPECT_LITERALS,
        prefixes: Sequence[tuple[str, str]] = tracker_patterns.SUSPECT_PREFIXES,
    ) -> None:
        self._root_domain = root_domain.lower().lstrip(".")
        self._scoped_domains = frozenset({self._root_domain, f".{self._root_domain}"})
        self._literals = types.MappingProxyType(dict(literals))
        self._prefixes = tuple(prefixes)

    @property
    def root_domain(self) -> str:
        return self._root_domain

    def is_domain_in_scope(self, cookie: audit.CookieRecord) -> bool:
        """Return True if the cookie is set on the root domain itself.

        Only the two literal forms ``root`` and ``.root`` match;
        subdomains such as ``lib.umn.edu`` are correctly scoped.
        """
        return cookie.domain.lower() in self._scoped_domains

    def classify(self, name: str) -> str | None:
        """Return the tracking service that sets *name*, if known."""
        service = self._literals.get(name)
        if service is not None:
            return service
        for prefix, prefix_service in self._prefixes:
            if name.startswith(prefix):
                return prefix_service
        return None

    def is_offending(self, cookie: audit.CookieRecord) -> bool:
        return self.is_domain_in_scope(cookie) and self.classify(cookie.name) is not None

    def offending_cookies(self, cookies: Iterable[audit.CookieRecord]) -> list[audit.CookieRecord]:
        """Filter *cookies* down to the offending ones, keeping harvest order."""
        return [cookie for cookie in cookies if self.is_offending(cookie)]
