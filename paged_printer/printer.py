"""Render HTML documents with Paged.js and print them to PDF.

:class:`Printer` drives one :class:`~paged_printer.session.BrowserSession`.
For every document it opens a page, runs the polyfill, collects the page
events it emits and, for PDF output, hands the printed bytes to the
post-processor together with the collected geometry, metadata and outline.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import scripts
from .boxes import page_geometry_from_event
from .exceptions import (
    NavigationError,
    PagedPrinterError,
    PdfGenerationError,
    RenderTimeoutError,
)
from .outline import build_outline, headings_from_elements, iter_entries, normalize_tags
from .postprocessor import postprocess
from .security import BlockedRequest, RequestGate
from .session import BrowserSession
from .types import (
    AnchorPosition,
    HeadingNode,
    OutlineEntry,
    PageGeometry,
    PdfOptions,
    PrinterOptions,
    RenderInput,
    RenderResult,
)
from .units import to_points
from .utils import is_url, resolve_input, time_block

LOGGER = logging.getLogger("paged_printer.printer")

EVENTS = ("page", "size", "rendered", "postprocessing")

Emitter = Callable[..., None]


class RenderCollector:
    """Accumulates polyfill events for a single render pass.

    The callbacks exposed to the page only enqueue; one task drains the
    queue so page geometry is recorded in emission order. The terminal
    ``rendered`` signal resolves :attr:`rendered` exactly once.
    """

    def __init__(self, emit: Optional[Emitter] = None) -> None:
        self.pages: List[PageGeometry] = []
        self.size: Any = None
        self.result: Optional[RenderResult] = None

        self._emit = emit or (lambda *args: None)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._rendered: asyncio.Future = asyncio.get_running_loop().create_future()
        self._task: Optional[asyncio.Task] = None

    @property
    def rendered(self) -> asyncio.Future:
        return self._rendered

    # Callbacks exposed to the page --------------------------------------
    def on_page(self, page: Mapping[str, Any]) -> None:
        self._queue.put_nowait(("page", page))

    def on_size(self, size: Any) -> None:
        self._queue.put_nowait(("size", size))

    def on_rendered(
        self,
        message: str,
        width: Any = None,
        height: Any = None,
        orientation: Any = None,
        total: Optional[int] = None,
        performance: Optional[float] = None,
    ) -> None:
        result = RenderResult(
            message=message,
            width=width,
            height=height,
            orientation=orientation,
            total=total,
            performance=performance,
        )
        self._queue.put_nowait(("rendered", result))

    # Collection -----------------------------------------------------------
    def start(self) -> "RenderCollector":
        if self._task is None:
            self._task = asyncio.ensure_future(self._drain())
        return self

    async def _drain(self) -> None:
        try:
            while True:
                event, payload = await self._queue.get()
                if event == "page":
                    geometry = page_geometry_from_event(payload)
                    self.pages.append(geometry)
                    self._emit("page", geometry)
                elif event == "size":
                    self.size = payload
                    self._emit("size", payload)
                elif event == "rendered":
                    self.result = payload
                    self._emit("rendered", payload)
                    if not self._rendered.done():
                        self._rendered.set_result(payload)
                    return
        except Exception as exc:
            if not self._rendered.done():
                self._rendered.set_exception(exc)

    async def wait(self, timeout: Optional[float]) -> RenderResult:
        """Wait for the ``rendered`` signal, failing after ``timeout`` seconds."""

        try:
            return await asyncio.wait_for(asyncio.shield(self._rendered), timeout)
        except asyncio.TimeoutError as exc:
            raise RenderTimeoutError(
                f"Document did not finish rendering within {timeout} seconds "
                f"({len(self.pages)} page(s) rendered so far)."
            ) from exc

    async def aclose(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if not self._rendered.done():
            self._rendered.cancel()


class RenderedDocument:
    """An open, fully paginated page and the data collected while rendering it."""

    def __init__(
        self,
        session: Any,
        page: Any,
        *,
        pages: Sequence[PageGeometry],
        result: RenderResult,
        size: Any = None,
        blocked: Sequence[BlockedRequest] = (),
    ) -> None:
        self.session = session
        self.page = page
        self.pages = list(pages)
        self.result = result
        self.size = size
        self.blocked = list(blocked)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def metadata(self) -> Dict[str, str]:
        """Return the document title and every named ``<meta>`` tag."""

        raw = await self.page.evaluate(scripts.EXTRACT_METADATA) or {}
        return {str(key): str(value) for key, value in raw.items() if value is not None}

    async def headings(self, tags: Sequence[str]) -> List[HeadingNode]:
        order = normalize_tags(tags)
        if not order:
            return []
        elements = await self.page.evaluate(scripts.EXTRACT_HEADINGS, order) or []
        return headings_from_elements(order, elements)

    async def outline(self, tags: Sequence[str]) -> List[OutlineEntry]:
        return build_outline(tags, await self.headings(tags))

    async def anchors(self, ids: Iterable[str]) -> Dict[str, AnchorPosition]:
        """Return the page and in-page offset, in points, of each element id."""

        wanted = sorted({anchor for anchor in ids if anchor})
        if not wanted:
            return {}
        raw = await self.page.evaluate(scripts.ANCHOR_POSITIONS, wanted) or {}
        return {
            str(anchor): AnchorPosition(
                page_index=int(position["pageIndex"]),
                x=to_points(position.get("x") or 0.0),
                y=to_points(position.get("y") or 0.0),
            )
            for anchor, position in raw.items()
            if position and int(position.get("pageIndex", -1)) >= 0
        }

    async def content(self) -> str:
        try:
            return await self.page.content()
        except PlaywrightError as exc:
            raise PagedPrinterError(f"Unable to read the rendered markup: {exc}") from exc

    async def print_pdf(self, options: Optional[PdfOptions] = None) -> bytes:
        """Print the page to PDF bytes with zero margins."""

        options = options or PdfOptions()
        settings: Dict[str, Any] = {
            "print_background": options.print_background,
            "display_header_footer": False,
            "prefer_css_page_size": not options.width,
            "margin": {"top": "0", "right": "0", "bottom": "0", "left": "0"},
        }
        if options.width:
            settings["width"] = options.width
        if options.height:
            settings["height"] = options.height
        if options.orientation:
            settings["landscape"] = options.orientation.lower() == "landscape"

        try:
            data = await self.page.pdf(**settings)
        except PlaywrightError as exc:
            raise PdfGenerationError(f"PDF generation failed: {exc}") from exc
        if not data:
            raise PdfGenerationError("PDF generation returned no data.")
        return data

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.session.close_page(self.page)

    async def __aenter__(self) -> "RenderedDocument":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class Printer:
    """High-level render, print and post-process operations.

    Example:
        >>> async with Printer(PrinterOptions(allow_local=True)) as printer:
        ...     pdf = await printer.to_pdf("book.html", PdfOptions(outline_tags=["h1", "h2"]))
    """

    def __init__(
        self,
        options: Optional[PrinterOptions] = None,
        *,
        session: Any = None,
        **overrides: Any,
    ) -> None:
        options = options or PrinterOptions()
        if overrides:
            options = dataclasses.replace(options, **overrides)
        self.options = options
        self._session = session
        self._owns_session = session is None
        self._listeners: Dict[str, List[Callable[..., None]]] = {event: [] for event in EVENTS}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def on(self, event: str, callback: Callable[..., None]) -> Callable[..., None]:
        """Register ``callback`` for ``event`` (page, size, rendered, postprocessing)."""

        if event not in self._listeners:
            raise ValueError(f"Unknown event '{event}'. Expected one of: {', '.join(EVENTS)}")
        self._listeners[event].append(callback)
        return callback

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, ())):
            callback(*args)

    # ------------------------------------------------------------------
    # Session handling
    # ------------------------------------------------------------------
    @property
    def session(self) -> Any:
        if self._session is None:
            self._session = BrowserSession(
                headless=self.options.headless,
                allow_local=self.options.allow_local,
                ignore_https_errors=self.options.ignore_https_errors,
                browser_endpoint=self.options.browser_endpoint,
            )
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            session, self._session = self._session, None
            await session.close()

    async def __aenter__(self) -> "Printer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _gate(self, document_url: Optional[str]) -> RequestGate:
        always_allow = []
        if document_url:
            always_allow.append(document_url)
        if is_url(self.options.polyfill):
            always_allow.append(self.options.polyfill)
        return RequestGate(
            allow_local=self.options.allow_local,
            allow_remote=self.options.allow_remote,
            allowed_paths=self.options.allowed_paths,
            allowed_domains=self.options.allowed_domains,
            always_allow=always_allow,
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    async def _load(self, page: Any, url: Optional[str], html: Optional[str]) -> None:
        try:
            if html is not None:
                await page.set_content(html)
                if url:
                    await page.evaluate(scripts.SET_BASE_URL, url)
                return

            response = await page.goto(url)
        except PlaywrightError as exc:
            raise NavigationError(f"Failed to load {url or 'inline content'}: {exc}") from exc

        if response is None or response.ok:
            return
        if response.status >= 400:
            raise NavigationError(f"Failed to load {url}: HTTP {response.status}")
        LOGGER.warning("Loading %s returned HTTP %s", url, response.status)

    async def _inject_scripts(self, page: Any) -> None:
        polyfill = self.options.polyfill
        try:
            if is_url(polyfill):
                await page.add_script_tag(url=polyfill)
            else:
                await page.add_script_tag(path=str(polyfill))
            for script in self.options.additional_scripts:
                LOGGER.debug("Injecting additional script %s", script)
                await page.add_script_tag(path=str(script))
        except PlaywrightError as exc:
            raise PagedPrinterError(f"Unable to inject scripts into the page: {exc}") from exc

    async def render(self, input: RenderInput) -> RenderedDocument:
        """Load ``input``, paginate it and return the open document.

        The caller owns the returned document and must close it; on failure
        the page is closed before the error propagates.
        """

        url, html = resolve_input(input)
        session = self.session
        gate = self._gate(url if html is None else None)
        page = await session.new_page()
        collector: Optional[RenderCollector] = None
        try:
            with time_block(LOGGER, f"Rendering {url or 'inline content'}"):
                await page.route("**/*", gate.handle_route)
                await self._load(page, url, html)
                await page.evaluate(scripts.DISABLE_AUTO_PREVIEW)
                await self._inject_scripts(page)

                collector = RenderCollector(self._emit).start()
                await page.expose_function("onSize", collector.on_size)
                await page.expose_function("onPage", collector.on_page)
                await page.expose_function("onRendered", collector.on_rendered)
                await page.evaluate(scripts.START_PREVIEW)

                result = await collector.wait(self.options.timeout)
                try:
                    await page.wait_for_selector(
                        scripts.PAGES_SELECTOR,
                        timeout=self.options.timeout * 1000 if self.options.timeout else 0,
                    )
                except PlaywrightTimeoutError as exc:
                    raise RenderTimeoutError("Paginated output never appeared in the page.") from exc
        except BaseException:
            if collector is not None:
                await collector.aclose()
            await session.close_page(page)
            raise

        await collector.aclose()
        LOGGER.info(result.message)
        if gate.blocked:
            LOGGER.info("Blocked %d request(s) while rendering", len(gate.blocked))
        return RenderedDocument(
            session,
            page,
            pages=collector.pages,
            result=result,
            size=collector.size,
            blocked=gate.blocked,
        )

    async def preview(self, input: RenderInput) -> RenderedDocument:
        return await self.render(input)

    async def to_html(self, input: RenderInput) -> str:
        """Return the paginated markup of ``input``."""

        async with await self.render(input) as document:
            return await document.content()

    async def to_pdf(self, input: RenderInput, options: Optional[PdfOptions] = None) -> bytes:
        """Render ``input`` and return the post-processed PDF bytes."""

        options = options or PdfOptions()
        tags = normalize_tags(options.outline_tags)

        async with await self.render(input) as document:
            metadata = await document.metadata()
            outline: Optional[List[OutlineEntry]] = None
            anchors: Dict[str, AnchorPosition] = {}
            if tags:
                outline = await document.outline(tags)
                anchors = await document.anchors(entry.anchor_id for entry in iter_entries(outline))
            pdf = await document.print_pdf(options)

        self._emit("postprocessing")
        with time_block(LOGGER, "Post-processing"):
            return await asyncio.to_thread(
                postprocess,
                pdf,
                metadata=metadata,
                pages=document.pages,
                outline=outline,
                anchors=anchors,
                crop_to_trim=self.options.crop_to_trim,
            )


def render_to_pdf(
    input: RenderInput,
    options: Optional[PdfOptions] = None,
    printer_options: Optional[PrinterOptions] = None,
) -> bytes:
    """Synchronous wrapper around :meth:`Printer.to_pdf`."""

    async def _run() -> bytes:
        async with Printer(printer_options) as printer:
            return await printer.to_pdf(input, options)

    return asyncio.run(_run())


def render_to_html(input: RenderInput, printer_options: Optional[PrinterOptions] = None) -> str:
    """Synchronous wrapper around :meth:`Printer.to_html`."""

    async def _run() -> str:
        async with Printer(printer_options) as printer:
            return await printer.to_html(input)

    return asyncio.run(_run())


__all__ = [
    "EVENTS",
    "Printer",
    "RenderCollector",
    "RenderedDocument",
    "render_to_html",
    "render_to_pdf",
]
