from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence
import sys

import pytest
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from paged_printer import scripts  # noqa: E402


def make_pdf(pages: int = 3, *, width: float = 612, height: float = 792, title: str | None = None) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    metadata = {"/Producer": "Skia/PDF m120", "/Creator": "Chromium"}
    if title is not None:
        metadata["/Title"] = title
    writer.add_metadata(metadata)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def page_event(position: int, *, media=(0, 0, 816, 1056), crop=(48, 48, 720, 960)) -> Dict[str, Any]:
    """Raw ``page`` event as emitted by the polyfill for a page stacked at ``position``."""

    offset = position * media[3]
    return {
        "id": f"page-{position + 1}",
        "width": media[2],
        "height": media[3],
        "startToken": {"ref": f"ref-{position}", "offset": 0},
        "endToken": None,
        "breakAfter": None,
        "breakBefore": "page" if position else None,
        "position": position,
        "boxes": {
            "media": {"x": media[0], "y": media[1] + offset, "width": media[2], "height": media[3]},
            "crop": {"x": crop[0], "y": crop[1] + offset, "width": crop[2], "height": crop[3]},
        },
    }


class FakeResponse:
    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.ok = 200 <= status <= 299


class FakeContext:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakePage:
    """Stand-in for a Playwright page running the polyfill."""

    def __init__(
        self,
        *,
        page_events: Sequence[Dict[str, Any]] = (),
        metadata: Optional[Dict[str, str]] = None,
        headings: Sequence[Dict[str, Any]] = (),
        anchor_positions: Optional[Dict[str, Dict[str, Any]]] = None,
        pdf_bytes: bytes = b"",
        html: str = "<html><body class='pagedjs'></body></html>",
        emit_rendered: bool = True,
        goto_error: Exception | None = None,
        goto_status: int = 200,
        pdf_error: Exception | None = None,
    ) -> None:
        self.page_events = list(page_events)
        self.metadata = dict(metadata or {})
        self.headings = list(headings)
        self.anchor_positions = dict(anchor_positions or {})
        self.pdf_bytes = pdf_bytes
        self.html = html
        self.emit_rendered = emit_rendered
        self.goto_error = goto_error
        self.goto_status = goto_status
        self.pdf_error = pdf_error

        self.context = FakeContext()
        self.exposed: Dict[str, Callable[..., Any]] = {}
        self.calls: List[tuple] = []
        self.routes: List[tuple] = []
        self.script_tags: List[Dict[str, Any]] = []
        self.pdf_settings: Dict[str, Any] | None = None
        self.closed = False

    async def route(self, pattern: str, handler: Callable[..., Any]) -> None:
        self.routes.append((pattern, handler))

    async def goto(self, url: str) -> FakeResponse:
        self.calls.append(("goto", url))
        if self.goto_error is not None:
            raise self.goto_error
        return FakeResponse(self.goto_status)

    async def set_content(self, html: str) -> None:
        self.calls.append(("set_content", html))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", script, arg))
        if script == scripts.START_PREVIEW:
            for event in self.page_events:
                self.exposed["onPage"](event)
            self.exposed["onSize"]({"width": {"value": 8.5, "unit": "in"}, "height": {"value": 11, "unit": "in"}})
            if self.emit_rendered:
                total = len(self.page_events)
                self.exposed["onRendered"](
                    f"Rendering {total} pages took 12 milliseconds.", 816, 1056, None, total, 12
                )
            return None
        if script == scripts.EXTRACT_METADATA:
            return dict(self.metadata)
        if script == scripts.EXTRACT_HEADINGS:
            return [heading for heading in self.headings if heading["tagName"] in arg]
        if script == scripts.ANCHOR_POSITIONS:
            return {key: value for key, value in self.anchor_positions.items() if key in arg}
        return None

    async def add_script_tag(self, **kwargs: Any) -> None:
        self.calls.append(("add_script_tag", kwargs))
        self.script_tags.append(kwargs)

    async def expose_function(self, name: str, callback: Callable[..., Any]) -> None:
        self.exposed[name] = callback

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        self.calls.append(("wait_for_selector", selector))

    async def pdf(self, **settings: Any) -> bytes:
        self.pdf_settings = settings
        if self.pdf_error is not None:
            raise self.pdf_error
        return self.pdf_bytes

    async def content(self) -> str:
        return self.html

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False
        self.closed_pages: List[FakePage] = []

    async def new_page(self) -> FakePage:
        return self.page

    async def close_page(self, page: FakePage) -> None:
        try:
            if not page.is_closed():
                await page.close()
        finally:
            await page.context.close()
            self.closed_pages.append(page)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def pdf_factory() -> Callable[..., bytes]:
    return make_pdf


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    return make_pdf(3, title="Chromium title")


@pytest.fixture()
def sample_pdf(tmp_path: Path, sample_pdf_bytes: bytes) -> Path:
    pdf_path = tmp_path / "sample.pdf"
    pdf_path.write_bytes(sample_pdf_bytes)
    return pdf_path


@pytest.fixture()
def three_page_events() -> List[Dict[str, Any]]:
    return [page_event(index) for index in range(3)]
