from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

R, G, B = 0, 1, 2


@dataclass(frozen=True)
class ColorRule:
    """
    Permissive per-pixel predicate over normalized (0..1) RGB.

    A pixel matches when every channel is above its floor, every
    (hi, lo, delta) pair satisfies channel[hi] - channel[lo] > delta, and the
    mean of the three channels is above min_brightness.
    """

    floors: Tuple[float, float, float]
    excess: Tuple[Tuple[int, int, float], ...]
    min_brightness: float


class HighlightColor(str, Enum):
    YELLOW = "yellow"
    ORANGE = "orange"
    BLUE = "blue"
    PINK = "pink"
    UNKNOWN = "unknown"

    @property
    def rule(self) -> Optional[ColorRule]:
        return _RULES.get(self)

    @classmethod
    def detectable(cls) -> Tuple["HighlightColor", ...]:
        return tuple(c for c in cls if c in _RULES)

    @classmethod
    def parse(cls, name: "str | HighlightColor") -> "HighlightColor":
        if isinstance(name, HighlightColor):
            color = name
        else:
            try:
                color = cls((name or "").strip().lower())
            except ValueError:
                raise ValueError(f"unknown highlight color: {name!r}") from None
        if color.rule is None:
            raise ValueError(f"highlight color {color.value!r} has no detection rule")
        return color


# Tuned against faint overlays on white/sepia reader pages. White, gray and
# black text never match any rule. Pink is the loosest rule and also accepts
# most yellow/orange pixels, so classification checks it last.
_RULES = {
    HighlightColor.PINK: ColorRule(
        floors=(0.50, 0.30, 0.30),
        excess=((R, B, 0.05),),
        min_brightness=0.35,
    ),
    HighlightColor.YELLOW: ColorRule(
        floors=(0.70, 0.65, 0.0),
        excess=((R, B, 0.12), (G, B, 0.12), (G, R, -0.10)),
        min_brightness=0.45,
    ),
    HighlightColor.ORANGE: ColorRule(
        floors=(0.70, 0.40, 0.0),
        excess=((R, B, 0.25), (R, G, 0.10)),
        min_brightness=0.40,
    ),
    HighlightColor.BLUE: ColorRule(
        floors=(0.0, 0.40, 0.55),
        excess=((B, R, 0.08),),
        min_brightness=0.40,
    ),
}


def match_pixels(rgb: np.ndarray, color: HighlightColor) -> np.ndarray:
    """Evaluate the color's rule on an (H,W,3) uint8 array; returns a bool (H,W) array."""
    rule = color.rule
    if rule is None:
        raise ValueError(f"highlight color {color.value!r} has no detection rule")
    px = rgb[:, :, :3].astype(np.float32) / 255.0
    ok = np.ones(px.shape[:2], dtype=bool)
    for ch, floor in enumerate(rule.floors):
        if floor > 0.0:
            ok &= px[:, :, ch] > floor
    for hi, lo, delta in rule.excess:
        ok &= (px[:, :, hi] - px[:, :, lo]) > delta
    ok &= px.mean(axis=2) > rule.min_brightness
    return ok


def classify_rgb(r: float, g: float, b: float) -> HighlightColor:
    """Classify one 0..255 color (e.g. a region's average) into a highlight color."""
    px = np.array([[[r, g, b]]], dtype=np.float32).clip(0, 255).astype(np.uint8)
    for color in HighlightColor.detectable():
        if bool(match_pixels(px, color)[0, 0]):
            return color
    return HighlightColor.UNKNOWN
