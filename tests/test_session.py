from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest
from playwright.async_api import Error as PlaywrightError

from paged_printer import session as session_module
from paged_printer.exceptions import SessionError
from paged_printer.session import BrowserSession

from conftest import FakeContext, FakePage


class FakeBrowserContext(FakeContext):
    def __init__(self, page_error: Exception | None = None) -> None:
        super().__init__()
        self.page_error = page_error
        self.pages: List[FakePage] = []

    async def new_page(self) -> FakePage:
        if self.page_error is not None:
            raise self.page_error
        page = FakePage()
        page.context = self
        self.pages.append(page)
        return page


class FakeBrowser:
    def __init__(self, page_error: Exception | None = None) -> None:
        self.page_error = page_error
        self.contexts: List[FakeBrowserContext] = []
        self.context_kwargs: List[Dict[str, Any]] = []
        self.closed = False

    async def new_context(self, **kwargs: Any) -> FakeBrowserContext:
        self.context_kwargs.append(kwargs)
        context = FakeBrowserContext(self.page_error)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Exception | None = None) -> None:
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs: Dict[str, Any] | None = None
        self.endpoint: str | None = None

    async def launch(self, **kwargs: Any) -> FakeBrowser:
        self.launch_kwargs = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser

    async def connect_over_cdp(self, endpoint: str) -> FakeBrowser:
        self.endpoint = endpoint
        return self.browser


class FakePlaywright:
    def __init__(self, chromium: FakeChromium) -> None:
        self.chromium = chromium
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


class FakePlaywrightManager:
    def __init__(self, playwright: FakePlaywright) -> None:
        self.playwright = playwright

    async def start(self) -> FakePlaywright:
        return self.playwright


def _install(monkeypatch, *, launch_error=None, page_error=None) -> FakePlaywright:
    playwright = FakePlaywright(FakeChromium(FakeBrowser(page_error), launch_error))
    monkeypatch.setattr(session_module, "async_playwright", lambda: FakePlaywrightManager(playwright))
    return playwright


def test_launch_args_follow_local_access() -> None:
    assert BrowserSession().launch_args == ["--disable-dev-shm-usage"]
    assert "--allow-file-access-from-files" in BrowserSession(allow_local=True).launch_args


def test_new_session_is_not_started() -> None:
    session = BrowserSession(browser_endpoint="http://127.0.0.1:9222")

    assert session.started is False
    assert session.browser_endpoint == "http://127.0.0.1:9222"


def test_close_page_closes_page_and_context() -> None:
    page = FakePage()

    asyncio.run(BrowserSession().close_page(page))

    assert page.closed is True
    assert page.context.closed is True


def test_close_without_start_is_a_no_op() -> None:
    asyncio.run(BrowserSession().close())


def test_start_launches_chromium_with_launch_args(monkeypatch) -> None:
    playwright = _install(monkeypatch)
    session = BrowserSession(headless=False, allow_local=True)

    async def run():
        async with session:
            assert session.started is True

    asyncio.run(run())

    assert playwright.chromium.launch_kwargs == {
        "headless": False,
        "args": ["--disable-dev-shm-usage", "--allow-file-access-from-files"],
    }
    assert playwright.chromium.browser.closed is True
    assert playwright.stopped is True
    assert session.started is False


def test_launch_failure_raises_session_error_and_stops_playwright(monkeypatch) -> None:
    playwright = _install(monkeypatch, launch_error=PlaywrightError("Executable doesn't exist"))
    session = BrowserSession()

    with pytest.raises(SessionError) as excinfo:
        asyncio.run(session.start())

    assert "Executable doesn't exist" in str(excinfo.value)
    assert playwright.stopped is True
    assert session.started is False


def test_browser_endpoint_connects_over_cdp(monkeypatch) -> None:
    playwright = _install(monkeypatch)
    session = BrowserSession(browser_endpoint="http://127.0.0.1:9222")

    asyncio.run(session.start())

    assert playwright.chromium.endpoint == "http://127.0.0.1:9222"
    assert playwright.chromium.launch_kwargs is None
    assert session.started is True


def test_new_page_failure_closes_context(monkeypatch) -> None:
    playwright = _install(monkeypatch, page_error=PlaywrightError("Target closed"))
    session = BrowserSession()

    with pytest.raises(PlaywrightError):
        asyncio.run(session.new_page())

    browser = playwright.chromium.browser
    assert len(browser.contexts) == 1
    assert browser.contexts[0].closed is True


def test_page_context_manager_closes_page_and_context(monkeypatch) -> None:
    playwright = _install(monkeypatch)
    session = BrowserSession(ignore_https_errors=False)

    async def run():
        async with session.page() as page:
            assert page.closed is False
            raise RuntimeError("render failed")

    with pytest.raises(RuntimeError):
        asyncio.run(run())

    browser = playwright.chromium.browser
    assert browser.context_kwargs == [{"ignore_https_errors": False}]
    assert browser.contexts[0].pages[0].closed is True
    assert browser.contexts[0].closed is True
