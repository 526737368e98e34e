import logging
from typing import List

import numpy as np

from .engines import ITxtExtractor
from .preprocess import enhance_for_ocr
from .schema import TextObservation, mean_confidence

logger = logging.getLogger("highlightcapture")


def recognize(extractor: ITxtExtractor, image: np.ndarray) -> List[TextObservation]:
    """
    Run one engine on one image. Any engine failure is logged and reported as
    zero observations; recognition problems never abort a pipeline run.
    """
    try:
        return list(extractor.run(image) or [])
    except Exception as e:  # engines wrap native errors inconsistently
        logger.warning("OCR engine %s failed on %sx%s image: %s",
                       getattr(extractor, "name", type(extractor).__name__),
                       image.shape[1] if image.ndim >= 2 else 0,
                       image.shape[0] if image.ndim >= 1 else 0,
                       e)
        return []


def recognize_best(extractor: ITxtExtractor, image: np.ndarray) -> List[TextObservation]:
    """
    Recognize the image as-is and after OCR enhancement; keep whichever result
    has the higher mean confidence (ties keep the original).
    """
    original = recognize(extractor, image)
    enhanced = recognize(extractor, enhance_for_ocr(image))
    if enhanced and mean_confidence(enhanced) > mean_confidence(original):
        return enhanced
    return original


def join_left_to_right(observations: List[TextObservation]) -> str:
    parts = sorted(observations, key=lambda o: (o.bbox.x, -o.bbox.mid_y))
    text = " ".join(o.text.strip() for o in parts if o.text and o.text.strip())
    # light cleanup for doubled spaces
    return " ".join(text.split())
