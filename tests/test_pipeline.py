import asyncio
import io
import threading

import numpy as np
import pytest
from PIL import Image

import highlights.mask as mask_mod
from conftest import FakeRecognizer, blank_page, obs, paint
from config import PipelineConfig
from highlights import (
    HighlightColor,
    InvalidImage,
    NoHighlightDetected,
    extract_highlights,
    extract_highlights_sync,
    run_pipeline,
)
from highlights.models import RasterImage
from ocr.engines import RecognitionError

EXPECTED = "The experiment was consistent with theory."


def test_end_to_end_three_line_paragraph(three_line_page):
    image, observations = three_line_page
    rec = FakeRecognizer(page_shape=(image.height, image.width), page=observations)

    result = asyncio.run(run_pipeline(image, HighlightColor.PINK, recognizer=rec))

    assert result.passages == [EXPECTED]
    assert result.color == "pink"
    assert [ln.line_index for ln in result.lines] == [0, 1]
    assert all("Unrelated" not in ln.text for ln in result.lines)
    assert result.counts["lines"] == 3
    assert result.counts["selected_lines"] == 2
    assert len(result.regions) == 1
    assert result.regions[0].color == "pink"
    assert rec.page_calls == 1
    assert rec.crop_calls == 2


def test_single_highlighted_line_round_trip():
    page = paint(blank_page(300, 100), 20, 38, 280, 62)
    rec = FakeRecognizer(
        page_shape=(100, 300),
        page=[obs("Hello highlighted world", 0.1, 0.4, 0.8, 0.2)],
        on_crop=lambda crop: [obs("Hello  highlighted   world ", 0.05, 0.2, 0.9, 0.6)],
    )
    passages = asyncio.run(extract_highlights(RasterImage.from_array(page), "pink", recognizer=rec))
    assert passages == ["Hello highlighted world"]


def test_accepts_encoded_bytes(three_line_page):
    image, observations = three_line_page
    buf = io.BytesIO()
    Image.fromarray(np.asarray(image.pixels)).save(buf, format="PNG")
    rec = FakeRecognizer(page_shape=(image.height, image.width), page=observations)
    assert extract_highlights_sync(buf.getvalue(), recognizer=rec) == [EXPECTED]


def test_color_is_guessed_when_not_given(three_line_page):
    _, observations = three_line_page
    page = paint(blank_page(400, 300), 40, 40, 136, 88, (255, 240, 120))
    rec = FakeRecognizer(page_shape=(300, 400), page=observations)
    result = asyncio.run(run_pipeline(page, None, recognizer=rec))
    assert result.color == "yellow"
    assert result.passages == [EXPECTED]


def test_auto_color_falls_back_to_default_on_plain_page(three_line_page):
    _, observations = three_line_page
    rec = FakeRecognizer(page_shape=(300, 400), page=observations)
    result = asyncio.run(
        run_pipeline(blank_page(400, 300), "auto", recognizer=rec, default_color=HighlightColor.BLUE)
    )
    assert result.color == "blue"
    # no mask evidence: every line passes through
    assert result.counts["selected_lines"] == 3


def test_no_text_means_no_passages(page_builder):
    image = page_builder(100, 100, [(10, 10, 90, 30)])
    result = asyncio.run(run_pipeline(image, recognizer=FakeRecognizer(page_shape=(100, 100))))
    assert result.passages == []
    assert len(result.regions) == 1


def test_page_recognition_failure_is_not_fatal(page_builder):
    class Broken(FakeRecognizer):
        def run(self, image):
            raise RecognitionError("tesseract missing")

    image = page_builder(100, 100, [(10, 10, 90, 30)])
    assert asyncio.run(extract_highlights(image, recognizer=Broken())) == []


@pytest.mark.parametrize("bad", [b"", b"definitely not an image", np.zeros((0, 10, 3), dtype=np.uint8), 42])
def test_invalid_images_are_rejected(bad):
    with pytest.raises(InvalidImage):
        asyncio.run(run_pipeline(bad, recognizer=FakeRecognizer()))


@pytest.mark.parametrize("color", [None, "auto", HighlightColor.PINK])
@pytest.mark.parametrize(
    "pixels",
    [np.zeros((20, 20), dtype=np.uint8), np.zeros((20, 20, 2), dtype=np.uint8), np.zeros((0, 20, 3), dtype=np.uint8)],
)
def test_hand_built_raster_without_rgb_is_rejected(pixels, color):
    with pytest.raises(InvalidImage):
        asyncio.run(run_pipeline(RasterImage(pixels), color, recognizer=FakeRecognizer()))


def test_mask_failure_propagates(monkeypatch, three_line_page):
    def boom(rgb, color):
        raise ValueError("bad buffer")

    monkeypatch.setattr(mask_mod, "match_pixels", boom)
    image, observations = three_line_page
    rec = FakeRecognizer(page_shape=(image.height, image.width), page=observations)
    with pytest.raises(NoHighlightDetected):
        asyncio.run(run_pipeline(image, HighlightColor.PINK, recognizer=rec))


def test_invalid_config_is_rejected(three_line_page):
    image, _ = three_line_page
    with pytest.raises(ValueError):
        asyncio.run(run_pipeline(image, recognizer=FakeRecognizer(), config=PipelineConfig(primary_threshold=1.5)))


def test_cancellation_returns_nothing(three_line_page):
    image, observations = three_line_page
    started = threading.Event()
    release = threading.Event()

    def blocking(crop):
        started.set()
        release.wait(timeout=5)
        return []

    rec = FakeRecognizer(page_shape=(image.height, image.width), page=observations, on_crop=blocking)

    async def scenario():
        task = asyncio.create_task(run_pipeline(image, recognizer=rec))

        async def wait_started():
            while not started.is_set():
                await asyncio.sleep(0.01)

        try:
            await asyncio.wait_for(wait_started(), timeout=5)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()

    asyncio.run(scenario())
    assert started.is_set()
