from highlights.colors import HighlightColor
from highlights.errors import HighlightError, InvalidImage, NoHighlightDetected
from highlights.models import HighlightedLine, HighlightMask, HighlightResult, RasterImage, TextLine
from highlights.pipeline import extract_highlights, extract_highlights_sync, run_pipeline

__all__ = [
    "HighlightColor",
    "HighlightError",
    "InvalidImage",
    "NoHighlightDetected",
    "HighlightedLine",
    "HighlightMask",
    "HighlightResult",
    "RasterImage",
    "TextLine",
    "extract_highlights",
    "extract_highlights_sync",
    "run_pipeline",
]
