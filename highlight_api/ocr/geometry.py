"""
Coordinate transforms between the normalized observation frame and pixel space.

Observation frame: normalized [0, 1], origin at the bottom-left (y up).
Pixel space: integer pixels, origin at the top-left (y down), as used by
numpy arrays, masks and crops.

Every component that maps between the two goes through this module.
"""
from __future__ import annotations

import math

from .schema import PixelBox, Rect

_EPS = 1e-9


def flip_y(y: float, height: float = 0.0) -> float:
    """Mirror a normalized vertical span: bottom-left origin <-> top-left origin."""
    return 1.0 - y - height


def to_pixel_box(rect: Rect, width: int, height: int) -> PixelBox:
    """
    Map a normalized rect onto a (width x height) raster.

    Edges are rounded to the nearest pixel and clamped to the raster bounds.
    The returned box may be empty (x1 <= x0 or y1 <= y0).
    """
    top = flip_y(rect.y, rect.height)
    x0 = int(round(rect.x * width))
    x1 = int(round((rect.x + rect.width) * width))
    y0 = int(round(top * height))
    y1 = int(round((top + rect.height) * height))
    return (
        min(max(x0, 0), width),
        min(max(y0, 0), height),
        min(max(x1, 0), width),
        min(max(y1, 0), height),
    )


def to_pixel_box_outer(rect: Rect, width: int, height: int) -> PixelBox:
    """Like to_pixel_box but floors the start and ceils the end, so nothing inside rect is clipped."""
    top = flip_y(rect.y, rect.height)
    x0 = int(math.floor(rect.x * width + _EPS))
    x1 = int(math.ceil((rect.x + rect.width) * width - _EPS))
    y0 = int(math.floor(top * height + _EPS))
    y1 = int(math.ceil((top + rect.height) * height - _EPS))
    return (
        min(max(x0, 0), width),
        min(max(y0, 0), height),
        min(max(x1, 0), width),
        min(max(y1, 0), height),
    )


def from_pixel_box(box: PixelBox, width: int, height: int) -> Rect:
    """Inverse of to_pixel_box for a top-left-origin pixel box."""
    x0, y0, x1, y1 = box
    if width <= 0 or height <= 0:
        return Rect(0.0, 0.0, 0.0, 0.0)
    w = (x1 - x0) / float(width)
    h = (y1 - y0) / float(height)
    return Rect(x0 / float(width), flip_y(y0 / float(height), h), w, h).clamped()


def pixel_box_is_empty(box: PixelBox) -> bool:
    x0, y0, x1, y1 = box
    return x1 <= x0 or y1 <= y0
