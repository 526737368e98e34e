from __future__ import annotations


class HighlightError(Exception):
    """Base class for errors that abort a highlight extraction run."""


class InvalidImage(HighlightError):
    """The source image is unreadable or degenerate (no pixels, no color channels)."""


class NoHighlightDetected(HighlightError):
    """The highlight mask could not be constructed at all."""
