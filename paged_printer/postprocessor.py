"""PDF post-processing: page boxes, metadata and outline.

The browser's print output knows nothing about the page boxes declared in
CSS, the document's ``<meta>`` tags or its heading structure. This module
rewrites the PDF object graph with :mod:`pypdf` to add them.
"""

from __future__ import annotations

import io
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NullObject,
    NumberObject,
    RectangleObject,
    create_string_object,
)

from .exceptions import GeometryMismatchError, InvalidPDFError
from .outline import count_entries
from .types import AnchorPosition, OutlineEntry, PageGeometry
from .xmp import build_xmp_packet

LOGGER = logging.getLogger("paged_printer.postprocessor")

PRODUCER_TAG = "paged-printer"

STANDARD_FIELDS = {
    "title": "/Title",
    "author": "/Author",
    "subject": "/Subject",
    "keywords": "/Keywords",
    "creator": "/Creator",
    "producer": "/Producer",
}

# Meta names that never become Info entries of their own.
_RESERVED_KEYS = {"description", "lang", "creationdate", "moddate"}

_NAME_UNSAFE = re.compile(r"[^A-Za-z0-9_.\-:]")


def pdf_date(value: datetime) -> str:
    """Format ``value`` using the PDF date syntax (``D:YYYYMMDDHHmmSS+HH'mm'``)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    offset = value.utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset else 0
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return value.strftime("D:%Y%m%d%H%M%S") + f"{sign}{hours:02d}'{minutes:02d}'"


def info_key(name: str) -> Optional[str]:
    """Return the Info dictionary key for a meta ``name`` or ``None`` to skip it."""

    stripped = name.strip()
    if not stripped:
        return None
    lowered = stripped.lower()
    if lowered in STANDARD_FIELDS:
        return STANDARD_FIELDS[lowered]
    if lowered in _RESERVED_KEYS:
        return None
    if stripped.startswith("/"):
        stripped = stripped[1:]
    safe = _NAME_UNSAFE.sub("_", stripped)
    return f"/{safe}" if safe else None


def trim_rectangle(geometry: PageGeometry) -> Tuple[float, float, float, float]:
    """Return the trim box of ``geometry`` as ``(x0, y0, x1, y1)`` in PDF space.

    Crop offsets are measured from the top-left corner of the media box while
    PDF coordinates start at the bottom-left, so the vertical offset is
    flipped.
    """

    media = geometry.media_box
    crop = geometry.crop_box
    x0 = media.x + crop.x
    y0 = media.y + media.height - crop.y - crop.height
    return (x0, y0, x0 + crop.width, y0 + crop.height)


def media_rectangle(geometry: PageGeometry) -> Tuple[float, float, float, float]:
    media = geometry.media_box
    return (media.x, media.y, media.x + media.width, media.y + media.height)


class PDFPostProcessor:
    """Mutates one rendered PDF and re-serialises it.

    Instances are single-use: load the bytes, apply :meth:`metadata`,
    :meth:`boxes` and :meth:`add_outline` as needed, then call :meth:`save`.
    """

    def __init__(self, pdf_bytes: bytes) -> None:
        if not pdf_bytes:
            raise InvalidPDFError("No PDF data to post-process.")
        try:
            self._reader = PdfReader(io.BytesIO(pdf_bytes))
            self._writer = PdfWriter(clone_from=self._reader)
        except PdfReadError as exc:
            raise InvalidPDFError(f"Corrupted or invalid PDF data. Error: {exc}") from exc
        except Exception as exc:
            raise InvalidPDFError(f"Unexpected error reading PDF data. Error: {exc}") from exc

    @property
    def writer(self) -> PdfWriter:
        return self._writer

    @property
    def num_pages(self) -> int:
        return len(self._writer.pages)

    @property
    def _catalog(self) -> DictionaryObject:
        return self._writer._root_object  # type: ignore[attr-defined]

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def metadata(self, meta: Mapping[str, Any], *, now: Optional[datetime] = None) -> Dict[str, str]:
        """Write ``meta`` to the Info dictionary and the XMP packet.

        Returns the Info entries that were written.
        """

        now = now or datetime.now(tz=timezone.utc)
        existing = self._reader.metadata
        previous_creator = existing.creator if existing is not None else None
        previous_producer = existing.producer if existing is not None else None

        info: Dict[str, str] = {}
        lowered: Dict[str, str] = {}
        for key, value in meta.items():
            if value is None:
                continue
            text = str(value).strip()
            if not text:
                continue
            lowered[str(key).strip().lower()] = text
            pdf_key = info_key(str(key))
            if pdf_key is None:
                continue
            info[pdf_key] = text

        if "/Subject" not in info and lowered.get("description"):
            info["/Subject"] = lowered["description"]

        if "/Creator" not in info:
            info["/Creator"] = (
                f"{previous_creator} + {PRODUCER_TAG}" if previous_creator else PRODUCER_TAG
            )
        if "/Producer" not in info and previous_producer:
            info["/Producer"] = str(previous_producer)

        timestamp = pdf_date(now)
        info["/CreationDate"] = timestamp
        info["/ModDate"] = timestamp

        LOGGER.debug("Setting metadata on PDF: %s", info)
        self._writer.add_metadata(info)

        lang = lowered.get("lang")
        if lang:
            self._catalog[NameObject("/Lang")] = create_string_object(lang)

        packet = build_xmp_packet(info, created=now, modified=now, lang=lang)
        stream = DecodedStreamObject()
        stream.set_data(packet)
        stream[NameObject("/Type")] = NameObject("/Metadata")
        stream[NameObject("/Subtype")] = NameObject("/XML")
        self._catalog[NameObject("/Metadata")] = self._writer._add_object(stream)
        return info

    # ------------------------------------------------------------------
    # Page boxes
    # ------------------------------------------------------------------
    def boxes(self, pages: Sequence[PageGeometry], *, crop_to_trim: bool = False) -> None:
        """Apply media and trim boxes from ``pages`` to the PDF pages, in order."""

        pdf_pages = self._writer.pages
        if len(pages) != len(pdf_pages):
            raise GeometryMismatchError(expected=len(pages), actual=len(pdf_pages))

        for index, (geometry, page) in enumerate(zip(pages, pdf_pages)):
            media = media_rectangle(geometry)
            trim = trim_rectangle(geometry)
            page.mediabox = RectangleObject(media)
            page.trimbox = RectangleObject(trim)
            page.cropbox = RectangleObject(trim if crop_to_trim else media)
            LOGGER.debug("Page %d: MediaBox %s TrimBox %s", index + 1, list(media), list(trim))

    # ------------------------------------------------------------------
    # Outline
    # ------------------------------------------------------------------
    def add_outline(
        self,
        outline: Sequence[OutlineEntry],
        anchors: Optional[Mapping[str, AnchorPosition]] = None,
    ) -> int:
        """Replace the document outline with ``outline``.

        Returns the number of bookmarks written.
        """

        if not outline:
            return 0

        outlines = DictionaryObject({NameObject("/Type"): NameObject("/Outlines")})
        outlines_ref = self._writer._add_object(outlines)
        first, last = self._add_outline_items(outlines_ref, outline, anchors or {})

        total = count_entries(outline)
        outlines[NameObject("/First")] = first
        outlines[NameObject("/Last")] = last
        outlines[NameObject("/Count")] = NumberObject(total)

        self._catalog[NameObject("/Outlines")] = outlines_ref
        self._catalog[NameObject("/PageMode")] = NameObject("/UseOutlines")
        LOGGER.debug("Added %d bookmark(s) to PDF", total)
        return total

    def _add_outline_items(
        self,
        parent: IndirectObject,
        entries: Sequence[OutlineEntry],
        anchors: Mapping[str, AnchorPosition],
    ) -> Tuple[IndirectObject, IndirectObject]:
        items = []
        for entry in entries:
            item = DictionaryObject()
            item[NameObject("/Title")] = create_string_object(entry.title)
            item[NameObject("/Parent")] = parent
            reference = self._writer._add_object(item)

            destination = self._destination(entry, anchors)
            if destination is not None:
                item[NameObject("/Dest")] = destination

            if entry.children:
                first, last = self._add_outline_items(reference, entry.children, anchors)
                item[NameObject("/First")] = first
                item[NameObject("/Last")] = last
                # Negative: the item starts collapsed.
                item[NameObject("/Count")] = NumberObject(-len(entry.children))
            items.append((reference, item))

        for index, (reference, item) in enumerate(items):
            if index > 0:
                item[NameObject("/Prev")] = items[index - 1][0]
            if index < len(items) - 1:
                item[NameObject("/Next")] = items[index + 1][0]

        return items[0][0], items[-1][0]

    def _destination(self, entry: OutlineEntry, anchors: Mapping[str, AnchorPosition]) -> Any:
        anchor_id = entry.anchor_id
        position = anchors.get(anchor_id) if anchor_id else None
        if position is not None and 0 <= position.page_index < self.num_pages:
            page = self._writer.pages[position.page_index]
            mediabox = page.mediabox
            return ArrayObject(
                [
                    page.indirect_reference,
                    NameObject("/XYZ"),
                    FloatObject(float(mediabox.left) + position.x),
                    FloatObject(float(mediabox.top) - position.y),
                    NullObject(),
                ]
            )

        if anchor_id:
            catalog_dests = self._catalog.get("/Dests")
            if catalog_dests is not None and f"/{anchor_id}" in catalog_dests.get_object():
                return NameObject(f"/{anchor_id}")
            if anchor_id in self._named_destinations():
                return create_string_object(anchor_id)

        LOGGER.warning("No destination found for outline entry %r (anchor %r)", entry.title, anchor_id)
        return None

    def _named_destinations(self) -> Mapping[str, Any]:
        try:
            return self._reader.named_destinations
        except Exception as exc:  # pragma: no cover - malformed name trees vary
            LOGGER.debug("Unable to read named destinations: %s", exc)
            return {}

    # ------------------------------------------------------------------
    def save(self) -> bytes:
        """Serialise the modified document."""

        buffer = io.BytesIO()
        self._writer.write(buffer)
        return buffer.getvalue()


def postprocess(
    pdf_bytes: bytes,
    *,
    metadata: Mapping[str, Any],
    pages: Sequence[PageGeometry],
    outline: Optional[Sequence[OutlineEntry]] = None,
    anchors: Optional[Mapping[str, AnchorPosition]] = None,
    crop_to_trim: bool = False,
    now: Optional[datetime] = None,
) -> bytes:
    """Run the full post-processing pass over ``pdf_bytes``."""

    processor = PDFPostProcessor(pdf_bytes)
    processor.metadata(metadata, now=now)
    processor.boxes(pages, crop_to_trim=crop_to_trim)
    if outline:
        processor.add_outline(outline, anchors)
    return processor.save()


__all__ = [
    "PDFPostProcessor",
    "info_key",
    "pdf_date",
    "postprocess",
    "trim_rectangle",
]
