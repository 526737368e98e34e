import numpy as np
from typing import List
from rapidocr_onnxruntime import RapidOCR

from ..geometry import from_pixel_box
from ..schema import TextObservation
from .itxt import ITxtExtractor, RecognitionError


class PPOCRExtractor(ITxtExtractor):
    name = "ppocr"

    def __init__(self):
        # Downloads tiny models on first use; keep one instance
        self.ocr = RapidOCR()

    def run(self, image: np.ndarray) -> List[TextObservation]:
        if image.ndim == 2:
            image = np.stack([image] * 3, axis=-1)
        # RapidOCR follows OpenCV channel order.
        bgr = np.ascontiguousarray(image[:, :, 2::-1])
        h, w = image.shape[:2]
        if h == 0 or w == 0:
            return []
        try:
            result, _elapse = self.ocr(bgr)
        except Exception as e:  # onnxruntime raises its own exception types
            raise RecognitionError(f"rapidocr failed: {e}") from e
        out: List[TextObservation] = []
        for item in result or []:
            b, t, c = item[0], item[1], item[2]
            if not t or not str(t).strip():
                continue
            xs = [int(p[0]) for p in b]
            ys = [int(p[1]) for p in b]
            bbox = from_pixel_box((min(xs), min(ys), max(xs), max(ys)), w, h)
            out.append(TextObservation(text=str(t).strip(), confidence=float(c), bbox=bbox))
        return out
