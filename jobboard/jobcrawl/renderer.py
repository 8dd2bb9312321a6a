"""Playwright-backed page rendering.

One ``BrowserSession`` owns the browser process for a whole run. Every
navigation unit gets its own browser context via ``open_page()``, which is
closed on every exit path (success, timeout, unexpected error).
"""
from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import async_playwright, Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from .errors import NavigationError, FatalSessionError
from .settings import Settings

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox']

_HREFS_JS = "(nodes) => nodes.map(n => n.href).filter(Boolean)"


def _first_line(e: Exception) -> str:
    msg = str(e)
    return msg.splitlines()[0] if msg else type(e).__name__


class RenderedPage:
    """Thin wrapper exposing the handful of page operations the crawlers need."""

    def __init__(self, page):
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, timeout_ms: int):
        try:
            await self._page.goto(url, wait_until='domcontentloaded', timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError(url, f'timeout after {timeout_ms}ms') from e
        except PlaywrightError as e:
            raise NavigationError(url, _first_line(e)) from e

    async def links(self, selector: str) -> List[str]:
        """Absolute hrefs of every element matching ``selector``."""
        try:
            return await self._page.eval_on_selector_all(selector, _HREFS_JS)
        except PlaywrightError as e:
            # e.g. execution context destroyed by a late redirect
            raise NavigationError(self.url, _first_line(e)) from e

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as e:
            raise NavigationError(self.url, _first_line(e)) from e


class BrowserSession:
    def __init__(self, playwright, browser, settings: Settings):
        self._playwright = playwright
        self._browser = browser
        self._settings = settings
        self._closed = False

    @classmethod
    async def launch(cls, settings: Settings) -> 'BrowserSession':
        try:
            pw = await async_playwright().start()
        except PlaywrightError as e:
            raise FatalSessionError(f"playwright failed to start: {e}") from e
        try:
            browser = await pw.chromium.launch(headless=settings.headless, args=LAUNCH_ARGS)
        except PlaywrightError as e:
            await pw.stop()
            raise FatalSessionError(f"browser launch failed: {e}") from e
        logger.info(f"Browser launched headless={settings.headless}")
        return cls(pw, browser, settings)

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[RenderedPage]:
        context = await self._browser.new_context(user_agent=self._settings.user_agent)
        try:
            page = await context.new_page()
            yield RenderedPage(page)
        finally:
            try:
                await context.close()
            except PlaywrightError:
                logger.debug("Context close failed", exc_info=True)

    async def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        logger.info("Browser closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class LazySession:
    """Launches the shared session on first use; at most one launch, one close."""

    def __init__(self, settings: Settings, launcher=None):
        self._settings = settings
        self._launcher = launcher or BrowserSession.launch
        self._session: Optional[BrowserSession] = None
        self._lock = asyncio.Lock()

    async def get(self) -> BrowserSession:
        async with self._lock:
            if self._session is None:
                self._session = await self._launcher(self._settings)
            return self._session

    async def close(self):
        async with self._lock:
            session, self._session = self._session, None
        if session is not None:
            await session.close()


__all__ = ['BrowserSession', 'RenderedPage', 'LazySession']
