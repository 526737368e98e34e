from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from config import PipelineConfig
from highlights.models import HighlightedLine
from ocr.repair import repair_passage

logger = logging.getLogger("highlightcapture")


def group_passages(
    lines: Sequence[HighlightedLine],
    config: Optional[PipelineConfig] = None,
) -> List[List[HighlightedLine]]:
    """
    Split lines (sorted top to bottom) into passages.

    A line continues the current passage while the vertical distance between
    its origin and the previous line's origin is strictly below
    passage_gap_factor x the first line's height.
    """
    cfg = config or PipelineConfig()
    if not lines:
        return []

    # Bottom-left origin: larger y is higher on the page.
    ordered = sorted(lines, key=lambda ln: (-ln.bbox.y, ln.line_index))
    threshold = ordered[0].bbox.height * cfg.passage_gap_factor

    groups: List[List[HighlightedLine]] = []
    current = [ordered[0]]
    last_y = ordered[0].bbox.y
    for ln in ordered[1:]:
        if abs(ln.bbox.y - last_y) < threshold:
            current.append(ln)
        else:
            groups.append(current)
            current = [ln]
        last_y = ln.bbox.y
    groups.append(current)
    return groups


def merge_passages(
    lines: Sequence[HighlightedLine],
    config: Optional[PipelineConfig] = None,
) -> List[str]:
    """Passage strings in reading order; blank passages are dropped."""
    passages: List[str] = []
    for group in group_passages(lines, config):
        text = repair_passage([ln.text for ln in group])
        if text:
            passages.append(text)
    logger.debug("Merged %d lines into %d passages", len(lines), len(passages))
    return passages
