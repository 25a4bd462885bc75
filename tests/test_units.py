from __future__ import annotations

import pytest

from paged_printer.units import to_points


@pytest.mark.parametrize(
    ("pixels", "points"),
    [
        (0, 0.0),
        (1, 0.75),
        (96, 72.0),
        (816, 612.0),
        (1056, 792.0),
        (2.5, 1.88),
        (1.5, 1.13),
        (-96, -72.0),
    ],
)
def test_to_points(pixels: float, points: float) -> None:
    assert to_points(pixels) == points


def test_to_points_has_at_most_two_decimals() -> None:
    value = to_points(0.1 + 0.2)
    assert value == 0.23
    assert round(value, 2) == value
