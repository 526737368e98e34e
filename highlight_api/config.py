from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Dict


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class PipelineConfig:
    # Overlap filter (fractions of a line's sampled area)
    primary_threshold: float = 0.10
    relaxed_threshold: float = 0.05
    grid_cols: int = 20
    grid_rows: int = 5

    # Observation filtering / column bounds (normalized units)
    min_text_height: float = 0.01
    column_margin: float = 0.05

    # Line clustering
    cluster_distance_k: float = 0.5  # x median observation height
    vertical_overlap_threshold: float = 0.4
    line_expand_ratio: float = 0.10  # x median height, applied above and below

    # Per-line crop + re-recognition
    vertical_padding_ratio: float = 0.08
    horizontal_padding_ratio: float = 0.03
    min_vertical_padding_px: float = 5.0
    min_horizontal_padding_px: float = 3.0
    upscale_factor: float = 2.0
    compare_enhanced: bool = False
    max_workers: int = 4

    # Passage merging
    passage_gap_factor: float = 1.5  # x first line height, exclusive

    # Mask morphology (pixels)
    close_radius: int = 2
    open_radius: int = 1

    # Region detection (pixels)
    region_min_width: int = 20
    region_min_height: int = 10
    region_min_line_height: float = 20.0
    region_gap_k: float = 0.8
    region_overlap_threshold: float = 0.5
    region_width_ratio: float = 0.7
    region_align_k: float = 0.3

    # Color guessing
    guess_min_coverage: float = 0.002
    guess_sample_step: int = 4

    def validate(self) -> None:
        for name in (
            "primary_threshold",
            "relaxed_threshold",
            "vertical_overlap_threshold",
            "vertical_padding_ratio",
            "horizontal_padding_ratio",
            "min_text_height",
            "column_margin",
            "region_overlap_threshold",
            "region_width_ratio",
            "guess_min_coverage",
        ):
            v = getattr(self, name)
            if not (0.0 <= v <= 1.0):
                raise ValueError(f"{name} must be in [0, 1], got {v}")
        if self.relaxed_threshold > self.primary_threshold:
            raise ValueError("relaxed_threshold must not exceed primary_threshold")
        if self.grid_cols < 1 or self.grid_rows < 1:
            raise ValueError("grid_cols and grid_rows must be >= 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.upscale_factor < 1.0:
            raise ValueError("upscale_factor must be >= 1.0")
        if self.passage_gap_factor <= 0 or self.cluster_distance_k <= 0:
            raise ValueError("passage_gap_factor and cluster_distance_k must be positive")
        if self.close_radius < 0 or self.open_radius < 0:
            raise ValueError("morphology radii must be >= 0")
        if self.guess_sample_step < 1:
            raise ValueError("guess_sample_step must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @staticmethod
    def from_env(prefix: str = "HL_") -> "PipelineConfig":
        """Defaults overridden by HL_<FIELD_NAME> variables (e.g. HL_PRIMARY_THRESHOLD=0.2)."""
        base = PipelineConfig()
        overrides: Dict[str, Any] = {}
        for f in fields(base):
            env_name = prefix + f.name.upper()
            default = getattr(base, f.name)
            if isinstance(default, bool):
                overrides[f.name] = _get_bool(env_name, default)
            elif isinstance(default, int):
                overrides[f.name] = _get_int(env_name, default)
            else:
                overrides[f.name] = _get_float(env_name, default)
        cfg = PipelineConfig(**overrides)
        cfg.validate()
        return cfg


@dataclass(frozen=True)
class Settings:
    # OCR
    ocr_engine: str  # tesseract | ppocr

    # Highlight color used when a request does not name one (or "auto")
    default_color: str

    # General
    environment: str
    log_level: str

    pipeline: PipelineConfig

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            ocr_engine=(os.getenv("OCR_ENGINE") or "tesseract").strip().lower(),
            default_color=(os.getenv("HIGHLIGHT_COLOR") or "pink").strip().lower() or "pink",
            environment=(os.getenv("ENVIRONMENT") or os.getenv("ENV") or "stage").strip() or "stage",
            log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
            pipeline=PipelineConfig.from_env(),
        )
