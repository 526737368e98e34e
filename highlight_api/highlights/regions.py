from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

import cv2 as cv

from config import PipelineConfig
from highlights.colors import classify_rgb
from highlights.mask import mean_color
from highlights.models import HighlightMask, HighlightRegion, RasterImage
from ocr.geometry import from_pixel_box

logger = logging.getLogger("highlightcapture")

# x0, y0, x1, y1, area (pixels, top-left origin)
_Box = Tuple[int, int, int, int, int]


def _components(mask: HighlightMask, config: PipelineConfig) -> List[_Box]:
    n, _labels, stats, _centroids = cv.connectedComponentsWithStats(mask.to_uint8(), connectivity=8)
    out: List[_Box] = []
    for i in range(1, n):  # label 0 is background
        x, y, w, h, area = (int(v) for v in stats[i])
        # Specks left after morphology are noise.
        if w >= config.region_min_width and h >= config.region_min_height:
            out.append((x, y, x + w, y + h, area))
    return out


def _should_merge(prev: _Box, cur: _Box, line_h: float, config: PipelineConfig) -> bool:
    gap = cur[1] - prev[3]
    pw, cw = prev[2] - prev[0], cur[2] - cur[0]
    overlap = max(0, min(cur[2], prev[2]) - max(cur[0], prev[0]))
    min_w = min(pw, cw)
    overlap_ratio = overlap / min_w if min_w > 0 else 0.0
    width_ratio = min_w / max(pw, cw) if max(pw, cw) > 0 else 0.0
    aligned = abs(cur[0] - prev[0]) < line_h * config.region_align_k
    return (
        gap < line_h * config.region_gap_k
        and overlap_ratio > config.region_overlap_threshold
        and (width_ratio > config.region_width_ratio or aligned)
    )


def _merge_group(group: List[_Box]) -> _Box:
    return (
        min(b[0] for b in group),
        min(b[1] for b in group),
        max(b[2] for b in group),
        max(b[3] for b in group),
        sum(b[4] for b in group),
    )


def merge_adjacent(boxes: List[_Box], config: PipelineConfig) -> List[_Box]:
    """Conservatively join vertically stacked components of one highlighted passage."""
    if not boxes:
        return []
    ordered = sorted(boxes, key=lambda b: (b[1], b[0]))
    head = ordered[:5]
    avg_h = sum(b[3] - b[1] for b in head) / len(head)
    line_h = max(avg_h, config.region_min_line_height)

    merged: List[_Box] = []
    group = [ordered[0]]
    for prev, cur in zip(ordered, ordered[1:]):
        if _should_merge(prev, cur, line_h, config):
            group.append(cur)
        else:
            merged.append(_merge_group(group))
            group = [cur]
    merged.append(_merge_group(group))
    return merged


def _region_color(image: RasterImage, mask: HighlightMask, region: HighlightRegion) -> Optional[str]:
    rgb = mean_color(image, region.bbox, mask)
    return classify_rgb(*rgb).value if rgb is not None else None


def detect_regions(
    mask: HighlightMask,
    config: Optional[PipelineConfig] = None,
    image: Optional[RasterImage] = None,
) -> List[HighlightRegion]:
    """
    Highlighted blocks found directly in the mask, top to bottom, in the
    observation frame. When the source image is given, each region is tagged
    with the color of its averaged highlighted pixels.
    """
    cfg = config or PipelineConfig()
    if mask.width == 0 or mask.height == 0:
        return []
    boxes = merge_adjacent(_components(mask, cfg), cfg)
    regions = [
        HighlightRegion(
            bbox=from_pixel_box((x0, y0, x1, y1), mask.width, mask.height),
            pixel_box=(x0, y0, x1, y1),
            area=area,
        )
        for x0, y0, x1, y1, area in boxes
    ]
    if image is not None:
        regions = [replace(r, color=_region_color(image, mask, r)) for r in regions]
    logger.debug("Detected %d highlight regions", len(regions))
    return regions
