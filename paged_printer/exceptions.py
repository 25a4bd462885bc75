"""
Custom exceptions for paged-printer.

This module defines all custom exceptions raised by the render pipeline and
the PDF post-processor.
"""


class PagedPrinterError(Exception):
    """Base exception for all paged-printer errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown paged-printer error occurred."


class SessionError(PagedPrinterError):
    """Raised when the browser session cannot be started or used."""

    @property
    def default_message(self) -> str:
        return "Unable to start the browser session."


class NavigationError(PagedPrinterError):
    """Raised when the document content fails to load."""

    @property
    def default_message(self) -> str:
        return "Failed to load the document content."


class RenderTimeoutError(PagedPrinterError):
    """Raised when the polyfill does not signal completion in time."""

    @property
    def default_message(self) -> str:
        return "Timed out waiting for the document to finish rendering."


class PdfGenerationError(PagedPrinterError):
    """Raised when the browser print step fails or returns nothing."""

    @property
    def default_message(self) -> str:
        return "The browser failed to generate the PDF."


class InvalidPDFError(PagedPrinterError):
    """Raised when the generated PDF bytes cannot be parsed."""

    @property
    def default_message(self) -> str:
        return "Invalid or corrupted PDF data."


class GeometryMismatchError(PagedPrinterError):
    """Raised when rendered page geometry does not line up with the PDF pages."""

    def __init__(self, message: str = "", *, expected: int | None = None, actual: int | None = None) -> None:
        self.expected = expected
        self.actual = actual
        if not message and expected is not None and actual is not None:
            message = (
                f"Rendered {expected} page(s) but the PDF contains {actual} page(s)."
            )
        super().__init__(message)

    @property
    def default_message(self) -> str:
        return "Rendered page geometry does not match the PDF page count."
