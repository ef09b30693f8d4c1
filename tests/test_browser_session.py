"""Tests for cookie_audit.browser.session — executable resolution and factory wiring."""

from __future__ import annotations

import asyncio
import pathlib
from unittest import mock

import pytest
from playwright import async_api

from cookie_audit import config
from cookie_audit.browser import session as browser_session
from cookie_audit.utils.errors import NavigationError


def _settings(browser_path: str = "") -> config.AuditSettings:
    with mock.patch.dict("os.environ", {"BROWSER_PATH": browser_path}, clear=True):
        return config.AuditSettings()


class TestResolveBrowserPath:
    """Tests for resolve_browser_path()."""

    def test_override_used_when_it_exists(self, tmp_path: pathlib.Path) -> None:
        exe = tmp_path / "chromium"
        exe.write_text("", encoding="utf-8")
        assert browser_session.resolve_browser_path(_settings(str(exe))) == str(exe)

    def test_missing_override_falls_back_to_default(self, tmp_path: pathlib.Path) -> None:
        default = tmp_path / "default-chromium"
        default.write_text("", encoding="utf-8")
        with mock.patch.object(config, "DEFAULT_BROWSER_PATH", str(default)):
            path = browser_session.resolve_browser_path(_settings(str(tmp_path / "nope")))
        assert path == str(default)

    def test_no_system_browser_uses_bundled(self, tmp_path: pathlib.Path) -> None:
        with mock.patch.object(config, "DEFAULT_BROWSER_PATH", str(tmp_path / "absent")):
            assert browser_session.resolve_browser_path(_settings()) is None


class TestSessionFactory:
    def test_binds_launch_options(self) -> None:
        options = config.AuditOptions(headless=False, timeout_seconds=7)
        opened = mock.AsyncMock(return_value="session")
        with mock.patch.object(browser_session.BrowserSession, "open", opened):
            result = asyncio.run(browser_session.session_factory(options, "/usr/bin/chromium")())
        assert result == "session"
        opened.assert_awaited_once_with(headless=False, timeout_ms=7000, executable_path="/usr/bin/chromium")

    def test_unlaunched_session_is_not_alive(self) -> None:
        assert browser_session.BrowserSession().is_alive() is False


# ── Adapter calls against a mocked Playwright page ──────────────

_URL = "https://lib.umn.edu"


def _session_with_page(goto: mock.AsyncMock) -> browser_session.BrowserSession:
    session = browser_session.BrowserSession()
    page = mock.MagicMock()
    page.goto = goto
    page.url = _URL
    session._page = page
    return session


class TestNavigate:
    """Tests for BrowserSession.navigate() error translation."""

    def test_timeout_becomes_navigation_error(self) -> None:
        session = _session_with_page(mock.AsyncMock(side_effect=async_api.TimeoutError("Timeout 25000ms exceeded")))
        with pytest.raises(NavigationError, match="Timed out loading https://lib.umn.edu"):
            asyncio.run(session.navigate(_URL))

    def test_playwright_error_becomes_navigation_error(self) -> None:
        session = _session_with_page(mock.AsyncMock(side_effect=async_api.Error("net::ERR_NAME_NOT_RESOLVED")))
        with pytest.raises(NavigationError, match="ERR_NAME_NOT_RESOLVED"):
            asyncio.run(session.navigate(_URL))

    def test_error_status_only_warns(self) -> None:
        session = _session_with_page(mock.AsyncMock(return_value=mock.MagicMock(status=404)))
        with mock.patch.object(browser_session, "log") as log:
            asyncio.run(session.navigate(_URL))
        log.warn.assert_called_once_with("Page returned error status", {"url": _URL, "status": 404})

    def test_ok_status_does_not_warn(self) -> None:
        session = _session_with_page(mock.AsyncMock(return_value=mock.MagicMock(status=200)))
        with mock.patch.object(browser_session, "log") as log:
            asyncio.run(session.navigate(_URL))
        log.warn.assert_not_called()

    def test_without_page_raises(self) -> None:
        with pytest.raises(RuntimeError):
            asyncio.run(browser_session.BrowserSession().navigate(_URL))


class TestReadCookies:
    """Tests for BrowserSession.read_cookies() payload mapping."""

    def test_maps_devtools_payload(self) -> None:
        session = browser_session.BrowserSession()
        cdp = mock.MagicMock()
        cdp.send = mock.AsyncMock(return_value={
            "cookies": [
                {
                    "name": "_ga",
                    "value": "GA1.1.1",
                    "domain": ".umn.edu",
                    "path": "/",
                    "expires": 1893456000,
                    "size": 20,
                    "httpOnly": False,
                    "secure": True,
                    "session": False,
                    "sameSite": "Lax",
                    "priority": "Medium",
                    "sourceScheme": "Secure",
                    "sourcePort": 443,
                },
                {"name": "sid", "value": "x", "domain": "lib.umn.edu", "expires": -1, "session": True, "size": 4},
            ],
        })
        session._cdp = cdp

        cookies = asyncio.run(session.read_cookies())

        cdp.send.assert_awaited_once_with("Network.getAllCookies")
        assert [c.name for c in cookies] == ["_ga", "sid"]
        assert cookies[0].same_site == "Lax"
        assert cookies[0].source_port == 443
        assert cookies[1].expires is None
        assert cookies[1].session is True

    def test_empty_payload(self) -> None:
        session = browser_session.BrowserSession()
        session._cdp = mock.MagicMock(send=mock.AsyncMock(return_value={}))
        assert asyncio.run(session.read_cookies()) == []

    def test_without_session_raises(self) -> None:
        with pytest.raises(RuntimeError):
            asyncio.run(browser_session.BrowserSession().read_cookies())
