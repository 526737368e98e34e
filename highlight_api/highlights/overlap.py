from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from config import PipelineConfig
from highlights.models import HighlightMask, TextLine
from ocr.geometry import pixel_box_is_empty, to_pixel_box
from ocr.schema import Rect

logger = logging.getLogger("highlightcapture")


def _grid_positions(start: int, span: int, count: int) -> np.ndarray:
    # Evenly spaced, inclusive of both edges; a single sample sits in the middle.
    if count <= 1:
        return np.array([start + span // 2], dtype=np.intp)
    return start + (np.arange(count, dtype=np.intp) * (span - 1)) // (count - 1)


def coverage_ratio(
    rect: Rect,
    mask: HighlightMask,
    config: Optional[PipelineConfig] = None,
) -> float:
    """
    Fraction of a normalized rect that lands on highlighted mask cells,
    estimated on a grid of at most grid_cols x grid_rows samples.
    """
    cfg = config or PipelineConfig()
    box = to_pixel_box(rect, mask.width, mask.height)
    if pixel_box_is_empty(box):
        return 0.0
    x0, y0, x1, y1 = box
    w, h = x1 - x0, y1 - y0
    cols = min(cfg.grid_cols, w)
    rows = min(cfg.grid_rows, h)
    xs = _grid_positions(x0, w, cols)
    ys = _grid_positions(y0, h, rows)
    samples = mask.cells[np.ix_(ys, xs)]
    return float(samples.sum()) / float(samples.size)


def filter_lines(
    lines: Sequence[TextLine],
    mask: HighlightMask,
    config: Optional[PipelineConfig] = None,
) -> List[TextLine]:
    """
    Lines that sit on the highlight, with tiered fallback:
    primary threshold, then relaxed threshold, then every line.
    A non-empty input never yields an empty result.
    """
    cfg = config or PipelineConfig()
    if not lines:
        return []

    ratios = [coverage_ratio(ln.bbox, mask, cfg) for ln in lines]

    kept = [ln for ln, r in zip(lines, ratios) if r >= cfg.primary_threshold]
    if kept:
        logger.debug("Overlap filter kept %d/%d lines at %.2f", len(kept), len(lines), cfg.primary_threshold)
        return kept

    logger.warning(
        "No lines passed overlap filter at %.2f; retrying at %.2f",
        cfg.primary_threshold, cfg.relaxed_threshold,
    )
    kept = [ln for ln, r in zip(lines, ratios) if r >= cfg.relaxed_threshold]
    if kept:
        return kept

    logger.warning("No lines passed relaxed overlap filter; using all %d detected lines", len(lines))
    return list(lines)
