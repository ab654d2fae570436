"""Playwright capability provider.

Owns the browser session (Playwright driver, browser, context, page) for one
server process. The browser is lazy-initialized on first use and can be torn
down and relaunched any number of times; ``close()`` is idempotent.
"""

from __future__ import annotations

__all__ = [
    'BrowserProvider',
    'CapabilityProvider',
    'CONSOLE_LIMIT',
]

import asyncio
import logging
import pathlib
import tempfile
import typing

from playwright.async_api import Browser, BrowserContext, ConsoleMessage as PlaywrightConsoleMessage, Page, Playwright
from playwright.async_api import async_playwright

from browser_mcp.models import ConsoleMessage, LaunchOptions

logger = logging.getLogger(__name__)

# Oldest console messages are dropped beyond this
CONSOLE_LIMIT = 1000


class CapabilityProvider(typing.Protocol):
    """What tools and the server need from a browser provider."""

    @property
    def output_dir(self) -> pathlib.Path: ...

    @property
    def is_running(self) -> bool: ...

    async def page(self) -> Page: ...

    def console_messages(self) -> list[ConsoleMessage]: ...

    async def close(self) -> None: ...

    def cleanup(self) -> None: ...


class BrowserProvider:
    """Lazy Playwright Chromium session."""

    def __init__(self, options: LaunchOptions) -> None:
        self.options = options

        # Lazy-initialized: None until first page() call
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

        # Serializes launch/close so interleaved first calls launch one browser
        self._lock = asyncio.Lock()

        self._console: list[ConsoleMessage] = []

        # Screenshots and PDFs (auto-cleanup on shutdown)
        self._temp_dir = tempfile.TemporaryDirectory(prefix='browser-mcp-')
        self._output_dir = pathlib.Path(self._temp_dir.name)

    @property
    def output_dir(self) -> pathlib.Path:
        return self._output_dir

    @property
    def is_running(self) -> bool:
        return self._page is not None

    async def page(self) -> Page:
        """Return the current page, launching the browser if needed."""
        async with self._lock:
            if self._page is not None and not self._page.is_closed():
                return self._page

            if self._browser is None:
                await self._launch()

            assert self._context is not None
            self._page = await self._context.new_page()
            self._console.clear()
            self._page.on('console', self._on_console)
            return self._page

    async def _launch(self) -> None:
        logger.info(f'Launching Chromium (headless={self.options.headless})')
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.options.headless)
            self._context = await self._browser.new_context()
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            self._browser = None
            raise

    def _on_console(self, message: PlaywrightConsoleMessage) -> None:
        self._console.append(ConsoleMessage(type=message.type, text=message.text))
        if len(self._console) > CONSOLE_LIMIT:
            del self._console[: len(self._console) - CONSOLE_LIMIT]

    def console_messages(self) -> list[ConsoleMessage]:
        return list(self._console)

    async def close(self) -> None:
        """Tear down browser, context and page. Safe to call when nothing is running."""
        async with self._lock:
            browser, driver = self._browser, self._playwright
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None

            if browser is None and driver is None:
                return

            logger.info('Closing browser')
            try:
                # browser.close() closes all contexts/pages automatically
                if browser is not None:
                    await browser.close()
            finally:
                if driver is not None:
                    await driver.stop()

    def cleanup(self) -> None:
        """Remove the temporary output directory."""
        self._temp_dir.cleanup()
