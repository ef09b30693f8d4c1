"""
Browser session management for concurrent audit workers.
Each BrowserSession instance owns its own Chromium process, context,
and page, so several workers can audit sites side by side without
sharing browser state.  Sessions are never shared between workers.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from typing import Protocol

from playwright import async_api

from cookie_audit import config
from cookie_audit.models import audit
from cookie_audit.utils import errors, logger

log = logger.create_logger("BrowserSession")

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
]


class AuditSession(Protocol):
    """The browser operations the audit pipeline relies on."""

    async def clear_cookies(self) -> None: ...

    async def navigate(self, url: str) -> None: ...

    async def wait_for_timeout(self, seconds: float) -> None: ...

    async def read_cookies(self) -> list[audit.CookieRecord]: ...

    async def page_body(self) -> str: ...

    def is_alive(self) -> bool: ...

    async def close(self) -> None: ...


SessionFactory = Callable[[], Awaitable[AuditSession]]


def resolve_browser_path(settings: config.AuditSettings) -> str | None:
    """Pick the Chromium executable to launch.

    ``BROWSER_PATH`` wins when it points at an existing file, then the
    fixed default path.  ``None`` means Playwright's bundled Chromium.
    """
    if settings.browser_path:
        if os.path.exists(settings.browser_path):
            return settings.browser_path
        log.warn("BROWSER_PATH does not exist, ignoring", {"path": settings.browser_path})
    if os.path.exists(config.DEFAULT_BROWSER_PATH):
        return config.DEFAULT_BROWSER_PATH
    log.warn("No system Chromium found, using bundled Chromium", {"default": config.DEFAULT_BROWSER_PATH})
    return None


class BrowserSession:
    """
    Manages an isolated browser session reused across one worker's sites.
    """

    def __init__(self) -> None:
        """Initialise a session with no browser attached yet."""
        self._playwright: async_api.Playwright | None = None
        self._browser: async_api.Browser | None = None
        self._context: async_api.BrowserContext | None = None
        self._page: async_api.Page | None = None
        self._cdp: async_api.CDPSession | None = None

    @classmethod
    async def open(
        cls,
        headless: bool = True,
        timeout_ms: int = 25000,
        executable_path: str | None = None,
    ) -> BrowserSession:
        """Launch Chromium and return a ready session."""
        session = cls()
        try:
            await session._launch(headless, timeout_ms, executable_path)
        except Exception:
            await session.close()
            raise
        return session

    # ==========================================================================
    # Browser Lifecycle
    # ==========================================================================

    async def _launch(self, headless: bool, timeout_ms: int, executable_path: str | None) -> None:
        log.debug("Launching browser", {"headless": headless, "executablePath": executable_path})
        self._playwright = await async_api.async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=headless,
            executable_path=executable_path,
            args=BROWSER_ARGS,
            timeout=timeout_ms,
        )
        self._context = await self._browser.new_context()
        self._page = await self._context.new_page()
        self._page.set_default_navigation_timeout(timeout_ms)
        self._page.set_default_timeout(timeout_ms)
        # Page-scoped DevTools session: reports cookies for this context only.
        self._cdp = await self._context.new_cdp_session(self._page)

    def is_alive(self) -> bool:
        """Return True while the underlying browser is still connected."""
        return self._browser is not None and self._browser.is_connected()

    def _require_page(self) -> async_api.Page:
        if not self._page:
            raise RuntimeError("No browser session active")
        return self._page

    # ==========================================================================
    # Navigation
    # ==========================================================================

    async def navigate(self, url: str) -> None:
        """Navigate the page to *url* and wait for the load event.

        Raises:
            NavigationError: On timeout, DNS, TLS, or connection failure.
        """
        page = self._require_page()
        log.debug("Navigating", {"url": url})
        try:
            response = await page.goto(url, wait_until="load")
        except async_api.TimeoutError as exc:
            raise errors.NavigationError(f"Timed out loading {url}") from exc
        except async_api.Error as exc:
            raise errors.NavigationError(exc.message) from exc

        # Error pages can still set cookies, so a bad status is not fatal.
        if response is not None and response.status >= 400:
            log.warn("Page returned error status", {"url": url, "status": response.status})
        if page.url != url:
            log.debug("Redirected", {"from": url, "to": page.url})

    async def wait_for_timeout(self, seconds: float) -> None:
        """Wait for a fixed number of seconds.

        Uses ``asyncio.sleep`` instead of Playwright's
        ``page.wait_for_timeout`` which is intended only
        for debugging and should not be used in production.
        """
        await asyncio.sleep(seconds)

    # ==========================================================================
    # Data Capture
    # ==========================================================================

    async def clear_cookies(self) -> None:
        """Delete every cookie in this session's browser context."""
        if not self._context:
            raise RuntimeError("No browser session active")
        await self._context.clear_cookies()

    async def read_cookies(self) -> list[audit.CookieRecord]:
        """Read all cookies in the context, with full DevTools metadata."""
        if not self._cdp:
            raise RuntimeError("No browser session active")
        payload = await self._cdp.send("Network.getAllCookies")
        raw_cookies = payload.get("cookies", [])
        log.debug("Captured raw cookies from browser", {"count": len(raw_cookies)})
        return [audit.CookieRecord.model_validate(raw) for raw in raw_cookies]

    async def page_body(self) -> str:
        """Get the full HTML content of the current page."""
        return await self._require_page().content()

    # ==========================================================================
    # Cleanup
    # ==========================================================================

    async def close(self) -> None:
        """Close the browser and clean up all resources."""
        log.debug("Closing browser session")
        self._cdp = None
        self._page = None

        if self._context:
            try:
                await self._context.close()
            except Exception as exc:
                log.debug("Context close error (non-fatal)", {"error": str(exc)})
            self._context = None

        if self._browser:
            try:
                await self._browser.close()
            except Exception as exc:
                log.debug("Browser close error (non-fatal)", {"error": str(exc)})
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.debug("Playwright stop error (non-fatal)", {"error": str(exc)})
            self._playwright = None


def session_factory(options: config.AuditOptions, executable_path: str | None) -> SessionFactory:
    """Bind launch options into a zero-argument session opener."""

    async def _open() -> AuditSession:
        return await BrowserSession.open(
            headless=options.headless,
            timeout_ms=options.timeout_ms,
            executable_path=executable_path,
        )

    return _open
