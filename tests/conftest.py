"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest

from cookie_audit import config
from cookie_audit.analysis import cookie_classifier
from cookie_audit.models import audit

from fakes import FakeBrowser

# ── Cookie Factories ────────────────────────────────────────────


@pytest.fixture()
def ga_cookie() -> audit.CookieRecord:
    """A Google Analytics cookie leaked onto the root domain."""
    return audit.CookieRecord(
        name="_ga",
        value="GA1.2.123456789.1234567890",
        domain=".umn.edu",
        path="/",
        expires=1893456000,
        http_only=False,
        secure=False,
        same_site="Lax",
        session=False,
        size=20,
        priority="Medium",
        source_scheme="Secure",
        source_port=443,
    )


@pytest.fixture()
def session_cookie() -> audit.CookieRecord:
    """A first-party session cookie correctly scoped to a subdomain."""
    return audit.CookieRecord(
        name="sessionid",
        value="abc123",
        domain="lib.umn.edu",
        path="/",
        expires=-1,
        http_only=True,
        secure=True,
        session=True,
        size=10,
    )


@pytest.fixture()
def classifier() -> cookie_classifier.CookieClassifier:
    return cookie_classifier.CookieClassifier()


@pytest.fixture()
def options() -> config.AuditOptions:
    """Fast options: no settle delay, verification on, newline joiner."""
    return config.AuditOptions(delay_seconds=0, verify=True, workers=2)


# ── Fake Browser ────────────────────────────────────────────────


@pytest.fixture()
def fake_browser() -> FakeBrowser:
    return FakeBrowser()
