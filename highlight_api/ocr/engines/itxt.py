from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..schema import TextObservation


class RecognitionError(RuntimeError):
    """Engine failed on one image. Callers treat this as "no observations"."""


class ITxtExtractor(ABC):
    """Interface for OCR engines that return word/line boxes for an image."""

    name = "base"

    @abstractmethod
    def run(self, image: np.ndarray) -> List[TextObservation]:
        """
        Recognize text in an RGB (H,W,3) or grayscale (H,W) uint8 array.

        Boxes are normalized to the given image with a bottom-left origin
        (see ocr.geometry).
        """
        ...
