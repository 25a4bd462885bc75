"""Utility helpers for paged-printer."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from .types import InlineContent

PathLike = Union[str, os.PathLike]

_URL_WITHOUT_HOST = {"file", "data", "about"}


def configure_logging(verbose: bool = False) -> None:
    """Configure package-wide logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@contextmanager
def time_block(logger: logging.Logger, message: str) -> Iterator[None]:
    """Context manager that logs the execution time of a code block."""
    start = datetime.now(tz=timezone.utc)
    logger.debug("Starting %s", message)
    try:
        yield
    finally:
        end = datetime.now(tz=timezone.utc)
        elapsed = (end - start).total_seconds()
        logger.info("%s completed in %.2fs", message, elapsed)


def is_url(value: str) -> bool:
    """Return ``True`` when ``value`` is an absolute URL rather than a file path."""
    parts = urlsplit(value)
    scheme = parts.scheme.lower()
    # A single letter scheme is a Windows drive, not a URL.
    if len(scheme) < 2:
        return False
    return bool(parts.netloc) or scheme in _URL_WITHOUT_HOST


def resolve_input(value: Any, cwd: Optional[PathLike] = None) -> Tuple[Optional[str], Optional[str]]:
    """Split a render input into ``(url, html)``.

    ``value`` may be a URL, a path relative to ``cwd``, an
    :class:`InlineContent` or a mapping with ``html`` and ``url`` keys.
    """
    if isinstance(value, InlineContent):
        return value.base_url, value.html
    if isinstance(value, Mapping):
        return value.get("url"), value.get("html")
    if isinstance(value, os.PathLike):
        return Path(value).expanduser().resolve().as_uri(), None

    text = str(value)
    if is_url(text):
        return text, None
    base = Path(cwd) if cwd is not None else Path.cwd()
    return (base / Path(text).expanduser()).resolve().as_uri(), None
