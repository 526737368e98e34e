from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2 as cv
import numpy as np

from config import PipelineConfig
from highlights.colors import HighlightColor, match_pixels
from highlights.errors import InvalidImage, NoHighlightDetected
from highlights.models import HighlightMask, RasterImage
from ocr.geometry import pixel_box_is_empty, to_pixel_box
from ocr.schema import Rect

logger = logging.getLogger("highlightcapture")


def _kernel(radius: int) -> np.ndarray:
    size = 2 * radius + 1
    return cv.getStructuringElement(cv.MORPH_ELLIPSE, (size, size))


def _clean(mask_u8: np.ndarray, close_radius: int, open_radius: int) -> np.ndarray:
    """Closing bridges small gaps inside a highlight stroke; opening then drops isolated noise."""
    out = mask_u8
    if close_radius > 0:
        out = cv.morphologyEx(out, cv.MORPH_CLOSE, _kernel(close_radius))
    if open_radius > 0:
        out = cv.morphologyEx(out, cv.MORPH_OPEN, _kernel(open_radius))
    return out


def build_mask(
    image: RasterImage,
    color: HighlightColor = HighlightColor.PINK,
    config: Optional[PipelineConfig] = None,
) -> HighlightMask:
    """
    Binary mask of pixels in the highlight color family, at image resolution.

    Raises InvalidImage for a degenerate raster and NoHighlightDetected when
    the mask cannot be computed at all.
    """
    cfg = config or PipelineConfig()
    px = image.pixels
    if px.ndim != 3 or px.shape[2] < 3 or image.width == 0 or image.height == 0:
        raise InvalidImage(f"no usable color channels in {image.width}x{image.height} image")

    try:
        raw = match_pixels(px, color).astype(np.uint8) * 255
        cleaned = _clean(raw, cfg.close_radius, cfg.open_radius)
    except (cv.error, ValueError, MemoryError) as e:
        raise NoHighlightDetected(f"mask construction failed for {color.value}: {e}") from e

    cells = cleaned > 127
    cells.setflags(write=False)
    mask = HighlightMask(cells)
    logger.debug("Mask %s: %dx%d, %.2f%% highlighted", color.value, mask.width, mask.height, 100 * mask.coverage())
    return mask


def guess_color(image: RasterImage, config: Optional[PipelineConfig] = None) -> Optional[HighlightColor]:
    """
    Pick the highlight color covering most of a subsampled image.

    Colors are tested most-specific first and each pixel is credited to the
    first rule it satisfies, so the permissive pink rule does not swallow
    yellow or orange pages. Returns None below the minimum coverage.
    """
    cfg = config or PipelineConfig()
    step = cfg.guess_sample_step
    sample = image.pixels[::step, ::step]
    if sample.size == 0:
        return None

    claimed = np.zeros(sample.shape[:2], dtype=bool)
    best: Tuple[float, Optional[HighlightColor]] = (0.0, None)
    for color in HighlightColor.detectable():
        hits = match_pixels(sample, color) & ~claimed
        claimed |= hits
        frac = float(hits.mean())
        if frac > best[0]:
            best = (frac, color)

    frac, color = best
    if color is None or frac < cfg.guess_min_coverage:
        return None
    logger.debug("Guessed highlight color %s (%.2f%% of sampled pixels)", color.value, 100 * frac)
    return color


def mean_color(
    image: RasterImage,
    rect: Rect,
    mask: Optional[HighlightMask] = None,
) -> Optional[Tuple[float, float, float]]:
    """
    Average RGB inside a normalized rect, or None when the rect maps to no pixels.
    With a mask of the same size, only highlighted cells are averaged, so glyphs
    on top of the highlight do not darken the result.
    """
    box = to_pixel_box(rect, image.width, image.height)
    if pixel_box_is_empty(box):
        return None
    x0, y0, x1, y1 = box
    region = image.pixels[y0:y1, x0:x1, :3]
    if mask is not None and mask.cells.shape == image.pixels.shape[:2]:
        keep = mask.cells[y0:y1, x0:x1]
        if not keep.any():
            return None
        region = region[keep]
    region = region.reshape(-1, 3).astype(np.float64)
    r, g, b = region.mean(axis=0)
    return float(r), float(g), float(b)
