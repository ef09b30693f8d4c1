"""
Known tracking-cookie signatures for the institution-wide scope audit.

Two tables map cookie names to the tracking service that sets them:
exact literal names, and name prefixes.  Prefixes are checked in the
order listed here, first match wins, so the more specific prefix must
come before any shorter prefix it starts with.
"""

from __future__ import annotations

import types

# ============================================================================
# Institution Scope
# ============================================================================

DEFAULT_ROOT_DOMAIN = "umn.edu"

# ============================================================================
# Cookie Name Signatures
# ============================================================================

SUSPECT_PREFIXES: tuple[tuple[str, str], ...] = (
    ("_dc_gtm_UA", "Google Analytics"),
    ("_ga", "Google Analytics"),
    ("_hjSessionUser", "Hotjar"),
)

SUSPECT_LITERALS: types.MappingProxyType[str, str] = types.MappingProxyType({
    "_fbp": "Facebook",
    "_clck": "Microsoft Clarity",
    "_clsk": "Microsoft Clarity",
    "_gcl_au": "Google AdSense",
    "_gid": "Google Analytics",
    "__gsas": "Google Adsense",
    "OJSSID": "Open Journal System",
    "_scid": "Snapchat",
    "_scid_r": "Snapchat",
    "_sctr": "Snapchat",
    "_ttp": "TikTok",
    "_tt_enable_cookie": "TikTok",
    "_uetvid": "Bing Ads",
    "_uetsid": "Bing Ads",
    "UMNOJSSID": "UMN Open Journal System",
})

# ============================================================================
# Google Analytics Remediation Triggers
# ============================================================================

GA_NAME_PREFIXES: tuple[str, ...] = ("_ga", "_gat")
GA_NAME_LITERALS: frozenset[str] = frozenset({"_gid"})
