from typing import List, Optional

from .itxt import ITxtExtractor, RecognitionError
from .tess import TesseractExtractor

try:
    from .ppocr import PPOCRExtractor
except ImportError:  # rapidocr_onnxruntime is an optional extra
    PPOCRExtractor = None  # type: ignore

_ALIASES = {
    "auto": "tesseract",
    "tess": "tesseract",
    "rapidocr": "ppocr",
    "paddle": "ppocr",
}


def available_engines() -> List[str]:
    names = ["tesseract"]
    if PPOCRExtractor is not None:
        names.append("ppocr")
    return names


def make_extractor(name: Optional[str]) -> ITxtExtractor:
    """
    Build a recognizer by name ('tesseract' by default, or 'ppocr').

    Raises ValueError for an unknown name and RuntimeError when the engine's
    package is not installed.
    """
    n = (name or "tesseract").strip().lower()
    n = _ALIASES.get(n, n)
    if n == "tesseract":
        return TesseractExtractor()
    if n == "ppocr":
        if PPOCRExtractor is None:
            raise RuntimeError("ppocr engine needs rapidocr_onnxruntime (pip install highlight-capture[rapidocr])")
        return PPOCRExtractor()
    raise ValueError(f"unknown OCR engine: {name!r}")


__all__ = [
    "ITxtExtractor",
    "RecognitionError",
    "TesseractExtractor",
    "PPOCRExtractor",
    "available_engines",
    "make_extractor",
]
