"""Per-page media and crop box calculation."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Tuple

from .types import Box, PageGeometry
from .units import to_points

LOGGER = logging.getLogger("paged_printer.boxes")


def _rect_value(rect: Mapping[str, Any], key: str) -> float:
    value = rect.get(key)
    return float(value) if value is not None else 0.0


def compute_boxes(media_rect: Mapping[str, Any], crop_rect: Mapping[str, Any]) -> Tuple[Box, Box]:
    """Return ``(media_box, crop_box)`` in points from pixel bounding rects.

    The crop box offsets are relative to the media box, so the result does
    not depend on where the page sits in the rendered document.
    """

    media_box = Box(
        width=to_points(_rect_value(media_rect, "width")),
        height=to_points(_rect_value(media_rect, "height")),
        x=0.0,
        y=0.0,
    )
    crop_box = Box(
        width=to_points(_rect_value(crop_rect, "width")),
        height=to_points(_rect_value(crop_rect, "height")),
        x=to_points(_rect_value(crop_rect, "x") - _rect_value(media_rect, "x")),
        y=to_points(_rect_value(crop_rect, "y") - _rect_value(media_rect, "y")),
    )
    return media_box, crop_box


def page_geometry_from_event(event: Mapping[str, Any]) -> PageGeometry:
    """Build a :class:`PageGeometry` from one raw ``page`` event."""

    boxes = event.get("boxes") or {}
    media_box, crop_box = compute_boxes(boxes.get("media") or {}, boxes.get("crop") or {})
    geometry = PageGeometry(
        page_id=str(event.get("id", "")),
        width=float(event.get("width") or 0.0),
        height=float(event.get("height") or 0.0),
        media_box=media_box,
        crop_box=crop_box,
        start_token=event.get("startToken"),
        end_token=event.get("endToken"),
        break_after=event.get("breakAfter"),
        break_before=event.get("breakBefore"),
        position=event.get("position"),
    )
    LOGGER.debug(
        "Page %s: media %sx%s pt, crop %sx%s pt at (%s, %s)",
        geometry.page_id,
        media_box.width,
        media_box.height,
        crop_box.width,
        crop_box.height,
        crop_box.x,
        crop_box.y,
    )
    return geometry


__all__ = ["compute_boxes", "page_geometry_from_event"]
