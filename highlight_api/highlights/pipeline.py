from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Union

import numpy as np
from PIL import Image

from config import PipelineConfig
from highlights.colors import HighlightColor
from highlights.column import estimate_column_bounds, observations_in_column
from highlights.errors import InvalidImage
from highlights.extract import extract_line_texts
from highlights.lines import cluster_lines
from highlights.mask import build_mask, guess_color
from highlights.merge import merge_passages
from highlights.models import HighlightResult, RasterImage
from highlights.overlap import filter_lines
from highlights.regions import detect_regions
from ocr.engines import ITxtExtractor
from ocr.router import recognize

logger = logging.getLogger("highlightcapture")

ImageInput = Union[RasterImage, bytes, np.ndarray, Image.Image]
ColorInput = Union[HighlightColor, str, None]


def as_raster(image: ImageInput) -> RasterImage:
    if isinstance(image, RasterImage):
        px = image.pixels
        if not isinstance(px, np.ndarray) or px.ndim != 3 or px.shape[2] < 3:
            raise InvalidImage("raster must hold (H,W,3) RGB pixels; build it with RasterImage.from_array")
        if image.width == 0 or image.height == 0:
            raise InvalidImage(f"degenerate image {image.width}x{image.height}")
        return image
    if isinstance(image, (bytes, bytearray)):
        return RasterImage.from_bytes(bytes(image))
    if isinstance(image, Image.Image):
        return RasterImage.from_pil(image)
    if isinstance(image, np.ndarray):
        return RasterImage.from_array(image)
    raise InvalidImage(f"unsupported image type: {type(image).__name__}")


def resolve_color(
    color: ColorInput,
    image: RasterImage,
    config: PipelineConfig,
    default: HighlightColor = HighlightColor.PINK,
) -> HighlightColor:
    """A named color is used as-is; None or "auto" guesses from the image, then falls back to `default`."""
    if color is None or (isinstance(color, str) and color.strip().lower() == "auto"):
        guessed = guess_color(image, config)
        if guessed is None:
            logger.info("No highlight color recognized; using %s", default.value)
            return default
        return guessed
    return HighlightColor.parse(color)


async def run_pipeline(
    image: ImageInput,
    color: ColorInput = HighlightColor.PINK,
    *,
    recognizer: ITxtExtractor,
    config: Optional[PipelineConfig] = None,
    default_color: HighlightColor = HighlightColor.PINK,
) -> HighlightResult:
    """
    Full highlight extraction for one image.

    Raises InvalidImage or NoHighlightDetected; every other problem degrades
    into a (possibly noisy) result. Cancelling the awaiting task abandons any
    outstanding recognizer calls and returns nothing.
    """
    cfg = config or PipelineConfig()
    cfg.validate()
    raster = as_raster(image)
    chosen = resolve_color(color, raster, cfg, default_color)

    # The mask and the page OCR are independent; run them side by side.
    mask, observations = await asyncio.gather(
        asyncio.to_thread(build_mask, raster, chosen, cfg),
        asyncio.to_thread(recognize, recognizer, raster.pixels),
    )

    column = estimate_column_bounds(observations, cfg)
    in_column = observations_in_column(observations, column, cfg)
    lines = cluster_lines(in_column, cfg)
    selected = filter_lines(lines, mask, cfg)
    highlighted = await extract_line_texts(raster, selected, column, recognizer, cfg)
    passages = merge_passages(highlighted, cfg)
    regions = detect_regions(mask, cfg, raster)

    counts = {
        "observations": len(observations),
        "in_column": len(in_column),
        "lines": len(lines),
        "selected_lines": len(selected),
        "extracted_lines": len(highlighted),
        "passages": len(passages),
        "regions": len(regions),
    }
    logger.info(
        "Extracted %d passages (%s, %dx%d): %s",
        len(passages), chosen.value, raster.width, raster.height, counts,
    )
    return HighlightResult(
        passages=passages,
        color=chosen.value,
        lines=highlighted,
        regions=regions,
        counts=counts,
    )


async def extract_highlights(
    image: ImageInput,
    color: ColorInput = HighlightColor.PINK,
    *,
    recognizer: ITxtExtractor,
    config: Optional[PipelineConfig] = None,
) -> List[str]:
    """Ordered highlighted passages. An empty list means no highlighted text was found."""
    result = await run_pipeline(image, color, recognizer=recognizer, config=config)
    return result.passages


def extract_highlights_sync(
    image: ImageInput,
    color: ColorInput = HighlightColor.PINK,
    *,
    recognizer: ITxtExtractor,
    config: Optional[PipelineConfig] = None,
) -> List[str]:
    return asyncio.run(extract_highlights(image, color, recognizer=recognizer, config=config))
