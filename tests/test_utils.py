from __future__ import annotations

import logging
from pathlib import Path

import pytest

from paged_printer.types import InlineContent
from paged_printer.utils import is_url, resolve_input, time_block


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("https://example.com/book.html", True),
        ("file:///srv/book.html", True),
        ("data:text/html,<h1>x</h1>", True),
        ("book.html", False),
        ("docs/book.html", False),
        ("C:\\docs\\book.html", False),
    ],
)
def test_is_url(value: str, expected: bool) -> None:
    assert is_url(value) is expected


def test_resolve_input_url() -> None:
    assert resolve_input("https://example.com/book.html") == ("https://example.com/book.html", None)


def test_resolve_input_relative_path(tmp_path: Path) -> None:
    url, html = resolve_input("book.html", cwd=tmp_path)

    assert html is None
    assert url == (tmp_path / "book.html").resolve().as_uri()


def test_resolve_input_path_object(tmp_path: Path) -> None:
    url, html = resolve_input(tmp_path / "book.html")

    assert url.startswith("file://")
    assert url.endswith("/book.html")
    assert html is None


def test_resolve_input_inline_content() -> None:
    assert resolve_input(InlineContent("<h1>x</h1>", base_url="https://example.com/")) == (
        "https://example.com/",
        "<h1>x</h1>",
    )
    assert resolve_input({"html": "<p>y</p>"}) == (None, "<p>y</p>")


def test_time_block_logs_elapsed_time(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("paged_printer.tests")
    with caplog.at_level(logging.INFO, logger="paged_printer.tests"):
        with time_block(logger, "Rendering"):
            pass

    assert any("Rendering completed in" in record.getMessage() for record in caplog.records)
