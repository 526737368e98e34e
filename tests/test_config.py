import pytest

from config import PipelineConfig, Settings


def test_defaults_are_valid():
    cfg = PipelineConfig()
    cfg.validate()
    assert cfg.primary_threshold == 0.10
    assert cfg.relaxed_threshold == 0.05
    assert (cfg.grid_cols, cfg.grid_rows) == (20, 5)
    assert cfg.upscale_factor == 2.0
    assert cfg.passage_gap_factor == 1.5


def test_config_is_immutable():
    cfg = PipelineConfig()
    with pytest.raises(Exception):
        cfg.primary_threshold = 0.5  # type: ignore[misc]


@pytest.mark.parametrize(
    "overrides",
    [
        {"primary_threshold": 1.2},
        {"relaxed_threshold": 0.2},
        {"grid_cols": 0},
        {"max_workers": 0},
        {"upscale_factor": 0.5},
        {"passage_gap_factor": 0.0},
        {"open_radius": -1},
        {"guess_sample_step": 0},
    ],
)
def test_validate_rejects(overrides):
    with pytest.raises(ValueError):
        PipelineConfig(**overrides).validate()


def test_from_env_reads_typed_overrides(monkeypatch):
    monkeypatch.setenv("HL_PRIMARY_THRESHOLD", "0.2")
    monkeypatch.setenv("HL_MAX_WORKERS", "2")
    monkeypatch.setenv("HL_COMPARE_ENHANCED", "yes")
    monkeypatch.setenv("HL_GRID_ROWS", "many")  # unparsable: keep default
    cfg = PipelineConfig.from_env()
    assert cfg.primary_threshold == 0.2
    assert cfg.max_workers == 2
    assert cfg.compare_enhanced is True
    assert cfg.grid_rows == 5


def test_from_env_validates(monkeypatch):
    monkeypatch.setenv("HL_RELAXED_THRESHOLD", "0.5")
    with pytest.raises(ValueError):
        PipelineConfig.from_env()


def test_settings_from_env(monkeypatch):
    for name in ("OCR_ENGINE", "HIGHLIGHT_COLOR", "ENVIRONMENT", "ENV", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert (s.ocr_engine, s.default_color, s.environment, s.log_level) == ("tesseract", "pink", "stage", "INFO")

    monkeypatch.setenv("OCR_ENGINE", " PPOCR ")
    monkeypatch.setenv("HIGHLIGHT_COLOR", "Yellow")
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings.from_env()
    assert (s.ocr_engine, s.default_color, s.environment, s.log_level) == ("ppocr", "yellow", "prod", "DEBUG")
    assert isinstance(s.pipeline, PipelineConfig)


def test_to_dict_round_trips():
    cfg = PipelineConfig(max_workers=7)
    assert PipelineConfig(**cfg.to_dict()) == cfg
