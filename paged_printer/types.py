"""
Type definitions and dataclasses for paged-printer.

This module defines the data structures shared by the render pipeline,
the outline builder and the PDF post-processor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

DEFAULT_POLYFILL_URL = "https://unpkg.com/pagedjs/dist/paged.polyfill.js"

DocumentMetadata = Dict[str, str]


def _default_polyfill() -> str:
    return os.environ.get("PAGED_PRINTER_POLYFILL") or DEFAULT_POLYFILL_URL


@dataclass
class Box:
    """
    Rectangle in PDF points.

    Attributes:
        width: Box width
        height: Box height
        x: Horizontal offset from the media box origin
        y: Vertical offset from the media box origin, measured downwards
    """
    width: float
    height: float
    x: float = 0.0
    y: float = 0.0


@dataclass
class PageGeometry:
    """
    Geometry of one page emitted by the polyfill.

    Attributes:
        page_id: Identifier assigned by the polyfill
        width: Page width in CSS pixels
        height: Page height in CSS pixels
        start_token: Token where the page content starts
        end_token: Token where the page content ends
        break_after: Break value after the page
        break_before: Break value before the page
        position: Zero-based page position
        media_box: Full page area in points
        crop_box: Trimmed content area in points, relative to ``media_box``
    """
    page_id: str
    width: float
    height: float
    media_box: Box
    crop_box: Box
    start_token: Any = None
    end_token: Any = None
    break_after: Any = None
    break_before: Any = None
    position: Optional[int] = None


@dataclass
class HeadingNode:
    """A heading element found in the rendered document."""
    tag_name: str
    rank: int
    text: str
    anchor_id: str
    document_order: int


@dataclass
class OutlineEntry:
    """One bookmark of the document outline."""
    title: str
    anchor_id: str
    children: List["OutlineEntry"] = field(default_factory=list)


@dataclass
class AnchorPosition:
    """
    Location of an anchor inside its page.

    Attributes:
        page_index: Zero-based index of the page holding the anchor
        x: Offset from the left edge of the page, in points
        y: Offset from the top edge of the page, in points
    """
    page_index: int
    x: float = 0.0
    y: float = 0.0


@dataclass
class RenderResult:
    """Payload of the polyfill's terminal ``rendered`` signal."""
    message: str
    width: Any = None
    height: Any = None
    orientation: Any = None
    total: Optional[int] = None
    performance: Optional[float] = None

    def __str__(self) -> str:
        return self.message


@dataclass
class InlineContent:
    """Inline HTML markup with an optional base URL for relative resources."""
    html: str
    base_url: Optional[str] = None


RenderInput = Union[str, os.PathLike, InlineContent]


@dataclass
class PrinterOptions:
    """
    Configuration for :class:`paged_printer.printer.Printer`.

    Attributes:
        headless: Run Chromium without a visible window
        allow_local: Permit ``file:`` sub-resources
        allow_remote: Permit sub-resources served from a remote host
        allowed_paths: Local path prefixes sub-resources may be loaded from
        allowed_domains: Remote hosts sub-resources may be loaded from
        additional_scripts: Script files injected after the polyfill
        polyfill: Path or URL of the Paged.js polyfill
        timeout: Seconds to wait for the rendered signal
        ignore_https_errors: Accept invalid TLS certificates
        browser_endpoint: CDP endpoint of an already running browser
        crop_to_trim: Also write the trim rectangle as ``/CropBox``
    """
    headless: bool = True
    allow_local: bool = False
    allow_remote: bool = False
    allowed_paths: Sequence[str] = ()
    allowed_domains: Sequence[str] = ()
    additional_scripts: Sequence[str] = ()
    polyfill: str = field(default_factory=_default_polyfill)
    timeout: float = 60.0
    ignore_https_errors: bool = True
    browser_endpoint: Optional[str] = None
    crop_to_trim: bool = False


@dataclass
class PdfOptions:
    """
    Print settings for :meth:`paged_printer.printer.Printer.to_pdf`.

    Attributes:
        width: Page width overriding the CSS page size (e.g. ``"210mm"``)
        height: Page height overriding the CSS page size
        orientation: ``"portrait"`` or ``"landscape"``
        outline_tags: Ordered tag names defining outline rank
        print_background: Print background graphics
    """
    width: Union[str, float, None] = None
    height: Union[str, float, None] = None
    orientation: Optional[str] = None
    outline_tags: Sequence[str] = ()
    print_background: bool = True
