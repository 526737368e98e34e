from __future__ import annotations

import logging
from statistics import median
from typing import List, Optional, Sequence

from config import PipelineConfig
from highlights.models import TextLine
from ocr.schema import Rect, TextObservation, union_all

logger = logging.getLogger("highlightcapture")


def _median_height(observations: Sequence[TextObservation]) -> float:
    heights = [o.bbox.height for o in observations]
    return float(median(heights)) if heights else 0.0


def _build_line(group: List[TextObservation], config: PipelineConfig) -> TextLine:
    members = sorted(group, key=lambda o: o.bbox.min_x)
    med_h = _median_height(members)
    center_y = sum(o.bbox.mid_y for o in members) / len(members)
    union = union_all(o.bbox for o in members)
    # Recognizers crop tightly; grow the line so mask sampling sees its full band.
    bbox = union.expanded(0.0, med_h * config.line_expand_ratio)
    text = " ".join(o.text.strip() for o in members if o.text and o.text.strip())
    return TextLine(
        bbox=bbox,
        text=text,
        members=tuple(members),
        median_height=med_h,
        center_y=center_y,
    )


def cluster_lines(
    observations: Sequence[TextObservation],
    config: Optional[PipelineConfig] = None,
) -> List[TextLine]:
    """
    Group observations into printed lines, top of page first.

    An observation joins the running line when its vertical center is within
    cluster_distance_k x median height of the line's center, OR its vertical
    overlap with the line box exceeds vertical_overlap_threshold.
    """
    cfg = config or PipelineConfig()
    if not observations:
        return []

    # Bottom-left origin: larger y is higher on the page.
    ordered = sorted(observations, key=lambda o: (-o.bbox.mid_y, o.bbox.min_x))
    threshold = _median_height(ordered) * cfg.cluster_distance_k

    groups: List[List[TextObservation]] = []
    current: List[TextObservation] = [ordered[0]]
    current_box: Rect = ordered[0].bbox

    for obs in ordered[1:]:
        dy = abs(obs.bbox.mid_y - current_box.mid_y)
        overlap = obs.bbox.vertical_overlap_ratio(current_box)
        if dy < threshold or overlap > cfg.vertical_overlap_threshold:
            current.append(obs)
            current_box = current_box.union(obs.bbox)
        else:
            groups.append(current)
            current = [obs]
            current_box = obs.bbox
    groups.append(current)

    lines = [_build_line(g, cfg) for g in groups]
    logger.debug("Clustered %d observations into %d lines (threshold=%.4f)", len(ordered), len(lines), threshold)
    return lines
