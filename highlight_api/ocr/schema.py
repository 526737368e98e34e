from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

PixelBox = Tuple[int, int, int, int]  # x0,y0,x1,y1 (top-left origin, exclusive end)


@dataclass(frozen=True)
class Rect:
    """
    Normalized rectangle in the observation frame.

    All coordinates are in [0, 1]. The origin is the BOTTOM-left corner of the
    image (y grows upwards), so the top of a page has the largest y values.
    Conversions to pixel space live in ocr.geometry and nowhere else.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2.0

    def union(self, other: "Rect") -> "Rect":
        x0 = min(self.min_x, other.min_x)
        y0 = min(self.min_y, other.min_y)
        x1 = max(self.max_x, other.max_x)
        y1 = max(self.max_y, other.max_y)
        return Rect(x0, y0, x1 - x0, y1 - y0)

    def vertical_overlap_ratio(self, other: "Rect") -> float:
        # Overlap relative to the shorter box.
        ov = max(0.0, min(self.max_y, other.max_y) - max(self.min_y, other.min_y))
        denom = min(self.height, other.height)
        return ov / denom if denom > 0 else 0.0

    def intersects(self, other: "Rect") -> bool:
        ox = min(self.max_x, other.max_x) - max(self.min_x, other.min_x)
        oy = min(self.max_y, other.max_y) - max(self.min_y, other.min_y)
        return ox > 0 and oy > 0

    def clamped(self) -> "Rect":
        x0 = min(max(self.min_x, 0.0), 1.0)
        y0 = min(max(self.min_y, 0.0), 1.0)
        x1 = min(max(self.max_x, 0.0), 1.0)
        y1 = min(max(self.max_y, 0.0), 1.0)
        return Rect(x0, y0, max(0.0, x1 - x0), max(0.0, y1 - y0))

    def expanded(self, dx: float, dy: float) -> "Rect":
        """Grow by dx on the left/right and dy on the top/bottom, clamped to the unit square."""
        return Rect(self.x - dx, self.y - dy, self.width + 2 * dx, self.height + 2 * dy).clamped()

    def to_list(self) -> List[float]:
        return [self.x, self.y, self.width, self.height]


def union_all(rects: Iterable[Rect]) -> Rect:
    rects = list(rects)
    if not rects:
        return Rect(0.0, 0.0, 0.0, 0.0)
    out = rects[0]
    for r in rects[1:]:
        out = out.union(r)
    return out


@dataclass(frozen=True)
class TextObservation:
    text: str
    confidence: float  # 0..1
    bbox: Rect


def mean_confidence(observations: List[TextObservation]) -> float:
    return sum(o.confidence for o in observations) / max(1, len(observations))
