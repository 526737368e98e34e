import os
from typing import Dict, List

import numpy as np

import pytesseract
from pytesseract import Output  # type: ignore

from ..geometry import from_pixel_box
from ..schema import TextObservation
from .itxt import ITxtExtractor, RecognitionError

# Allow override on Windows (desktop dev)
if os.name == "nt":
    tpath = os.getenv("TESSERACT_PATH")
    if tpath and os.path.exists(tpath):
        pytesseract.pytesseract.tesseract_cmd = tpath


def _cfg(psm: int = 6, lang: str = "eng") -> str:
    # psm 6 = assume a single uniform block of text; words come back with their own boxes.
    return f"--oem 1 --psm {psm} -l {lang} -c preserve_interword_spaces=1"


def _safe_float(x) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return float("nan")


def _words_to_observations(data: Dict[str, List], width: int, height: int) -> List[TextObservation]:
    out: List[TextObservation] = []
    n = len(data.get("text", []))
    for i in range(n):
        txt = (data["text"][i] or "").strip()
        if not txt:
            continue
        conf_raw = _safe_float(data.get("conf", ["-1"])[i])
        if np.isnan(conf_raw) or conf_raw < 0:
            continue
        x, y = int(data["left"][i]), int(data["top"][i])
        w, h = int(data["width"][i]), int(data["height"][i])
        if w <= 0 or h <= 0:
            continue
        bbox = from_pixel_box((x, y, x + w, y + h), width, height)
        out.append(TextObservation(text=txt, confidence=min(1.0, conf_raw / 100.0), bbox=bbox))
    return out


class TesseractExtractor(ITxtExtractor):
    """
    Word-level recognition with Tesseract.

    Words are returned as separate observations; the line clusterer regroups them.
    A single-line crop is better served by psm 7, which callers select with `psm`.
    """

    name = "tesseract"

    def __init__(self, psm: int = 6, lang: str = "eng"):
        self.psm = psm
        self.lang = lang

    def run(self, image: np.ndarray) -> List[TextObservation]:
        if image.ndim not in (2, 3) or image.shape[0] == 0 or image.shape[1] == 0:
            return []
        h, w = image.shape[:2]
        img = image.astype(np.uint8, copy=False)
        try:
            data = pytesseract.image_to_data(img, output_type=Output.DICT, config=_cfg(self.psm, self.lang))
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise RecognitionError(f"tesseract failed: {e}") from e
        return _words_to_observations(data, w, h)
