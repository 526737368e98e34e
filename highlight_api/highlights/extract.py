from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from config import PipelineConfig
from highlights.models import HighlightedLine, RasterImage, TextLine
from ocr.engines import ITxtExtractor
from ocr.geometry import pixel_box_is_empty, to_pixel_box_outer
from ocr.preprocess import upscale
from ocr.router import join_left_to_right, recognize, recognize_best
from ocr.schema import Rect

logger = logging.getLogger("highlightcapture")


def line_crop_rect(line: TextLine, column: Rect, width: int, height: int, config: PipelineConfig) -> Rect:
    """
    Crop region for one line: the full column width at the line's height, plus
    a small pad (ratio of line size, floored to a few pixels) on each side.
    """
    full = Rect(column.x, line.bbox.y, column.width, line.bbox.height)
    v_pad = max(line.median_height * height * config.vertical_padding_ratio, config.min_vertical_padding_px) / height
    h_pad = max(full.width * width * config.horizontal_padding_ratio, config.min_horizontal_padding_px) / width
    return full.expanded(h_pad, v_pad)


def recognize_line(
    image: RasterImage,
    line: TextLine,
    column: Rect,
    extractor: ITxtExtractor,
    config: PipelineConfig,
) -> str:
    """Crop, upscale and re-recognize one line. Returns '' when the crop yields nothing."""
    rect = line_crop_rect(line, column, image.width, image.height, config)
    box = to_pixel_box_outer(rect, image.width, image.height)
    if pixel_box_is_empty(box):
        return ""
    crop = upscale(image.crop(box).pixels, config.upscale_factor)
    if config.compare_enhanced:
        observations = recognize_best(extractor, crop)
    else:
        observations = recognize(extractor, crop)
    return join_left_to_right(observations)


async def extract_line_texts(
    image: RasterImage,
    lines: Sequence[TextLine],
    column: Rect,
    extractor: ITxtExtractor,
    config: Optional[PipelineConfig] = None,
) -> List[HighlightedLine]:
    """
    Final text for each selected line, in input order.

    Lines are re-recognized concurrently (at most max_workers at a time). A
    line whose crop yields no text keeps its clustering draft; a line that is
    still blank is dropped.
    """
    cfg = config or PipelineConfig()
    sem = asyncio.Semaphore(cfg.max_workers)

    async def _one(index: int, line: TextLine) -> Optional[HighlightedLine]:
        async with sem:
            try:
                text = await asyncio.to_thread(recognize_line, image, line, column, extractor, cfg)
            except Exception as e:  # one bad crop must not sink its siblings
                logger.warning("Line %d re-recognition failed, using draft text: %s", index, e)
                text = ""
        text = (text or "").strip()
        if not text:
            text = line.text.strip()
            if text:
                logger.debug("Line %d: crop yielded nothing, using draft text", index)
        if not text:
            return None
        return HighlightedLine(bbox=line.bbox, text=text, line_index=index)

    results = await asyncio.gather(*(_one(i, ln) for i, ln in enumerate(lines)))
    return [r for r in results if r is not None]
