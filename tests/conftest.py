import threading
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytest

from highlights.models import HighlightMask, RasterImage
from ocr.engines import ITxtExtractor
from ocr.schema import Rect, TextObservation

PINK = (255, 180, 200)
WHITE = (255, 255, 255)


def obs(text: str, x: float, y: float, w: float, h: float, conf: float = 0.9) -> TextObservation:
    return TextObservation(text=text, confidence=conf, bbox=Rect(x, y, w, h))


def blank_page(width: int, height: int, color: Tuple[int, int, int] = WHITE) -> np.ndarray:
    page = np.empty((height, width, 3), dtype=np.uint8)
    page[:, :] = color
    return page


def paint(page: np.ndarray, x0: int, y0: int, x1: int, y1: int, color: Tuple[int, int, int] = PINK) -> np.ndarray:
    """Fill a top-left pixel box in place and return the page."""
    page[y0:y1, x0:x1] = color
    return page


def mask_from(cells: np.ndarray) -> HighlightMask:
    return HighlightMask(np.asarray(cells, dtype=bool))


class FakeRecognizer(ITxtExtractor):
    """
    Scripted recognizer. A call with the page's shape returns `page`; any
    other image is treated as a line crop and answered by `on_crop`
    (empty by default).
    """

    name = "fake"

    def __init__(
        self,
        page_shape: Optional[Tuple[int, int]] = None,
        page: Sequence[TextObservation] = (),
        on_crop: Optional[Callable[[np.ndarray], List[TextObservation]]] = None,
    ):
        self.page_shape = page_shape
        self.page = list(page)
        self.on_crop = on_crop
        self.page_calls = 0
        self.crop_calls = 0
        self._lock = threading.Lock()

    def run(self, image: np.ndarray) -> List[TextObservation]:
        if self.page_shape is not None and tuple(image.shape[:2]) == tuple(self.page_shape):
            with self._lock:
                self.page_calls += 1
            return list(self.page)
        with self._lock:
            self.crop_calls += 1
        if self.on_crop is None:
            return []
        return self.on_crop(image)


def center_value(image: np.ndarray) -> int:
    h, w = image.shape[:2]
    px = image[h // 2, w // 2]
    return int(px[0]) if np.ndim(px) else int(px)


def by_center_value(table: Dict[int, str], delays: Optional[Dict[int, float]] = None):
    """Crop responder keyed on the gray level at the crop's center."""

    def respond(image: np.ndarray) -> List[TextObservation]:
        v = center_value(image)
        key = min(table, key=lambda k: abs(k - v))
        if delays and key in delays:
            time.sleep(delays[key])
        return [obs(table[key], 0.05, 0.2, 0.9, 0.6)]

    return respond


@pytest.fixture
def page_builder():
    """Factory: (width, height, pink boxes) -> RasterImage."""

    def build(width: int, height: int, boxes: Sequence[Tuple[int, int, int, int]] = ()) -> RasterImage:
        page = blank_page(width, height)
        for x0, y0, x1, y1 in boxes:
            paint(page, x0, y0, x1, y1)
        return RasterImage.from_array(page)

    return build


@pytest.fixture
def three_line_page():
    """
    400x300 white page with a three-line paragraph. Lines 1-2 sit partly on a
    pink block (30% of their sampled area); line 3 is clear of it.
    """
    width, height = 400, 300
    page = paint(blank_page(width, height), 40, 40, 136, 88)
    observations = [
        obs("consis-", 0.62, 0.80, 0.28, 0.05),
        obs("The experiment was", 0.10, 0.80, 0.50, 0.05),
        obs("tent with theory .", 0.10, 0.72, 0.80, 0.05),
        obs("Unrelated closing remark", 0.10, 0.64, 0.80, 0.05),
    ]
    return RasterImage.from_array(page), observations
