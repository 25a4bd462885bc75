"""
Paged Printer - render paginated HTML documents to print-ready PDFs.

This library drives a headless Chromium running the Paged.js polyfill and
post-processes the printed PDF: it writes the CSS page boxes as MediaBox and
TrimBox, copies the document's meta tags into the Info dictionary and XMP
packet, and builds a bookmark outline from the document headings.

Quick Start:
    >>> from paged_printer import PdfOptions, render_to_pdf
    >>> pdf = render_to_pdf('book.html', PdfOptions(outline_tags=['h1', 'h2']))

Main Classes:
    - Printer: Async render / print / post-process pipeline
    - BrowserSession: Explicitly owned headless browser
    - PDFPostProcessor: Page boxes, metadata and outline for existing PDF bytes
    - RequestGate: Allow-list policy for resources fetched while rendering

Exceptions:
    - PagedPrinterError: Base exception
    - NavigationError: Document content failed to load
    - RenderTimeoutError: Rendering did not finish in time
    - PdfGenerationError: The browser failed to print
    - GeometryMismatchError: Rendered pages do not match the PDF pages
    - InvalidPDFError: PDF bytes cannot be parsed
    - SessionError: Browser could not be started

For CLI usage, use the 'paged-printer' command after installation.
"""

# Core classes
from paged_printer.printer import (
    Printer,
    RenderCollector,
    RenderedDocument,
    render_to_html,
    render_to_pdf,
)
from paged_printer.postprocessor import PDFPostProcessor, postprocess
from paged_printer.security import RequestGate
from paged_printer.session import BrowserSession

# Algorithms
from paged_printer.boxes import compute_boxes, page_geometry_from_event
from paged_printer.outline import build_outline, count_entries
from paged_printer.units import to_points

# Data types
from paged_printer.types import (
    AnchorPosition,
    Box,
    HeadingNode,
    InlineContent,
    OutlineEntry,
    PageGeometry,
    PdfOptions,
    PrinterOptions,
    RenderResult,
)

# Exceptions
from paged_printer.exceptions import (
    GeometryMismatchError,
    InvalidPDFError,
    NavigationError,
    PagedPrinterError,
    PdfGenerationError,
    RenderTimeoutError,
    SessionError,
)

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Main classes
    "Printer",
    "RenderCollector",
    "RenderedDocument",
    "BrowserSession",
    "PDFPostProcessor",
    "RequestGate",
    # Functions
    "render_to_pdf",
    "render_to_html",
    "postprocess",
    "build_outline",
    "count_entries",
    "compute_boxes",
    "page_geometry_from_event",
    "to_points",
    # Data types
    "AnchorPosition",
    "Box",
    "HeadingNode",
    "InlineContent",
    "OutlineEntry",
    "PageGeometry",
    "PdfOptions",
    "PrinterOptions",
    "RenderResult",
    # Exceptions
    "PagedPrinterError",
    "NavigationError",
    "RenderTimeoutError",
    "PdfGenerationError",
    "GeometryMismatchError",
    "InvalidPDFError",
    "SessionError",
    # Version info
    "__version__",
]
