from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

from highlights.errors import InvalidImage
from ocr.preprocess import load_pil, pil_to_np_rgb
from ocr.schema import PixelBox, Rect, TextObservation


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Immutable RGB pixel buffer (H, W, 3) uint8, top-left origin."""

    pixels: np.ndarray
    scale: float = 1.0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def crop(self, box: PixelBox) -> "RasterImage":
        x0, y0, x1, y1 = box
        return RasterImage(_readonly(self.pixels[y0:y1, x0:x1].copy()), scale=self.scale)

    @staticmethod
    def from_array(arr: np.ndarray, scale: float = 1.0) -> "RasterImage":
        if not isinstance(arr, np.ndarray) or arr.ndim not in (2, 3):
            raise InvalidImage("image must be a (H,W) or (H,W,C) array")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidImage(f"degenerate image {arr.shape[1]}x{arr.shape[0]}")
        if arr.ndim == 2:
            arr = np.stack([arr] * 3, axis=-1)
        elif arr.shape[2] == 1:
            arr = np.repeat(arr, 3, axis=2)
        elif arr.shape[2] >= 3:
            arr = arr[:, :, :3]
        else:
            raise InvalidImage(f"unsupported channel count {arr.shape[2]}")
        if arr.dtype != np.uint8:
            if np.issubdtype(arr.dtype, np.floating) and float(arr.max(initial=0.0)) <= 1.0:
                arr = arr * 255.0
            arr = np.clip(arr, 0, 255).astype(np.uint8)
        return RasterImage(_readonly(np.ascontiguousarray(arr).copy()), scale=scale)

    @staticmethod
    def from_pil(im: Image.Image, scale: float = 1.0) -> "RasterImage":
        if im.width == 0 or im.height == 0:
            raise InvalidImage(f"degenerate image {im.width}x{im.height}")
        return RasterImage.from_array(pil_to_np_rgb(im), scale=scale)

    @staticmethod
    def from_bytes(image_bytes: bytes) -> "RasterImage":
        if not image_bytes:
            raise InvalidImage("empty image payload")
        try:
            im = load_pil(image_bytes)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise InvalidImage(f"unreadable image: {e}") from e
        return RasterImage.from_pil(im)


@dataclass(frozen=True, eq=False)
class HighlightMask:
    """Binary raster: True where the highlight background is present."""

    cells: np.ndarray  # bool (H, W)

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    def is_highlighted(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        return bool(self.cells[y, x])

    def coverage(self) -> float:
        return float(self.cells.mean()) if self.cells.size else 0.0

    def to_uint8(self) -> np.ndarray:
        return self.cells.astype(np.uint8) * 255


@dataclass(frozen=True)
class TextLine:
    bbox: Rect  # union of members, expanded vertically
    text: str  # draft: member texts joined left-to-right
    members: Tuple[TextObservation, ...]
    median_height: float
    center_y: float


@dataclass(frozen=True)
class HighlightedLine:
    bbox: Rect
    text: str
    line_index: int


@dataclass(frozen=True)
class HighlightRegion:
    bbox: Rect
    pixel_box: PixelBox
    area: int
    color: Optional[str] = None  # averaged highlight color, when the image was available


@dataclass
class HighlightResult:
    passages: List[str]
    color: Optional[str]
    lines: List[HighlightedLine] = field(default_factory=list)
    regions: List[HighlightRegion] = field(default_factory=list)
    counts: dict = field(default_factory=dict)
