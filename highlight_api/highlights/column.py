from __future__ import annotations

from typing import Iterable, List, Optional

from config import PipelineConfig
from ocr.schema import Rect, TextObservation

# Used when the page has no recognized text at all.
DEFAULT_COLUMN = Rect(0.1, 0.0, 0.8, 1.0)


def estimate_column_bounds(
    observations: Iterable[TextObservation],
    config: Optional[PipelineConfig] = None,
) -> Rect:
    """Union of all observation boxes grown by a margin, clamped to the page."""
    cfg = config or PipelineConfig()
    boxes = [o.bbox for o in observations]
    if not boxes:
        return DEFAULT_COLUMN
    m = cfg.column_margin
    x0 = max(0.0, min(b.min_x for b in boxes) - m)
    y0 = max(0.0, min(b.min_y for b in boxes) - m)
    x1 = min(1.0, max(b.max_x for b in boxes) + m)
    y1 = min(1.0, max(b.max_y for b in boxes) + m)
    return Rect(x0, y0, x1 - x0, y1 - y0)


def observations_in_column(
    observations: Iterable[TextObservation],
    column: Rect,
    config: Optional[PipelineConfig] = None,
) -> List[TextObservation]:
    """Keep observations tall enough to be body text that overlap the column."""
    cfg = config or PipelineConfig()
    return [
        o for o in observations
        if o.bbox.height >= cfg.min_text_height and o.bbox.intersects(column)
    ]
