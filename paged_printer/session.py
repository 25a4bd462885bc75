"""Explicitly owned headless browser session."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .exceptions import SessionError

LOGGER = logging.getLogger("paged_printer.session")

BASE_ARGS = ["--disable-dev-shm-usage"]


class BrowserSession:
    """One Chromium instance shared by the documents rendered through it.

    Use as an async context manager, or call :meth:`start` and :meth:`close`
    explicitly. Each document gets its own page from :meth:`new_page`.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        allow_local: bool = False,
        ignore_https_errors: bool = True,
        browser_endpoint: Optional[str] = None,
    ) -> None:
        self.headless = headless
        self.allow_local = allow_local
        self.ignore_https_errors = ignore_https_errors
        self.browser_endpoint = browser_endpoint

        self._playwright: Any = None
        self._browser: Any = None

    @property
    def launch_args(self) -> List[str]:
        args = list(BASE_ARGS)
        if self.allow_local:
            args.append("--allow-file-access-from-files")
        return args

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def start(self) -> "BrowserSession":
        if self._browser is not None:
            return self

        try:
            self._playwright = await async_playwright().start()
            if self.browser_endpoint:
                LOGGER.debug("Connecting to browser at %s", self.browser_endpoint)
                self._browser = await self._playwright.chromium.connect_over_cdp(self.browser_endpoint)
            else:
                LOGGER.debug("Launching Chromium (headless=%s, args=%s)", self.headless, self.launch_args)
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=self.launch_args,
                )
        except PlaywrightError as exc:
            await self.close()
            raise SessionError(f"Unable to start the browser: {exc}") from exc
        return self

    async def close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()

    async def new_page(self) -> Any:
        """Open a page in a fresh browser context, starting the browser if needed."""

        if self._browser is None:
            await self.start()

        context = await self._browser.new_context(ignore_https_errors=self.ignore_https_errors)
        try:
            return await context.new_page()
        except BaseException:
            await context.close()
            raise

    async def close_page(self, page: Any) -> None:
        """Close ``page`` and the context it was opened in."""

        try:
            if not page.is_closed():
                await page.close()
        finally:
            await page.context.close()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Any]:
        """Yield a page that is closed on every exit path."""

        page = await self.new_page()
        try:
            yield page
        finally:
            await self.close_page(page)

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = ["BrowserSession"]
