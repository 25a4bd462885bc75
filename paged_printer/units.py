"""CSS pixel to PDF point conversion."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

PX_TO_PT = Decimal("0.75")
_TWO_PLACES = Decimal("0.01")


def to_points(pixels: float) -> float:
    """Convert CSS pixels to points (96 px = 72 pt), rounded half-up to 2 places."""

    value = Decimal(repr(float(pixels))) * PX_TO_PT
    return float(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


__all__ = ["PX_TO_PT", "to_points"]
