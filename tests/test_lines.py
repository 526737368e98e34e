import pytest

from conftest import obs
from config import PipelineConfig
from highlights.column import DEFAULT_COLUMN, estimate_column_bounds, observations_in_column
from highlights.lines import cluster_lines
from ocr.schema import Rect


def test_empty_input_yields_no_lines():
    assert cluster_lines([]) == []


def test_single_observation_is_its_own_line():
    lines = cluster_lines([obs("alone", 0.1, 0.5, 0.3, 0.04)])
    assert len(lines) == 1
    assert lines[0].text == "alone"
    assert len(lines[0].members) == 1


def test_words_on_one_row_join_left_to_right_top_line_first():
    observations = [
        obs("fox", 0.60, 0.500, 0.10, 0.04),
        obs("second", 0.10, 0.40, 0.30, 0.04),
        obs("The", 0.10, 0.502, 0.10, 0.04),
        obs("quick brown", 0.25, 0.498, 0.30, 0.04),
    ]
    lines = cluster_lines(observations)
    assert [ln.text for ln in lines] == ["The quick brown fox", "second"]
    assert lines[0].center_y > lines[1].center_y


def test_line_box_covers_members_and_is_expanded():
    lines = cluster_lines([obs("a", 0.1, 0.5, 0.2, 0.04), obs("b", 0.4, 0.5, 0.2, 0.04)])
    (line,) = lines
    assert line.bbox.min_x == pytest.approx(0.1)
    assert line.bbox.max_x == pytest.approx(0.6)
    assert line.bbox.min_y == pytest.approx(0.5 - 0.004)
    assert line.bbox.max_y == pytest.approx(0.54 + 0.004)
    assert line.median_height == pytest.approx(0.04)


def test_vertical_overlap_alone_is_enough_to_join():
    # Centers are at least 0.5 x median height apart; only the overlap test joins them.
    tall = obs("Tall", 0.1, 0.50, 0.1, 0.08)
    short = obs("short", 0.3, 0.50, 0.1, 0.04)
    other = obs("x", 0.5, 0.545, 0.1, 0.04)
    lines = cluster_lines([tall, short, other])
    assert len(lines) == 1
    assert lines[0].text == "Tall short x"


def test_distant_rows_split():
    lines = cluster_lines([obs("one", 0.1, 0.7, 0.5, 0.04), obs("two", 0.1, 0.6, 0.5, 0.04)])
    assert [ln.text for ln in lines] == ["one", "two"]


def test_stricter_config_splits_more():
    observations = [obs("a", 0.1, 0.500, 0.2, 0.04), obs("b", 0.4, 0.515, 0.2, 0.04)]
    assert len(cluster_lines(observations)) == 1
    strict = PipelineConfig(cluster_distance_k=0.1, vertical_overlap_threshold=0.9)
    assert len(cluster_lines(observations, strict)) == 2


def test_column_bounds_and_filter():
    observations = [
        obs("body", 0.15, 0.5, 0.7, 0.04),
        obs("more body", 0.15, 0.4, 0.6, 0.04),
        obs("speck", 0.5, 0.3, 0.02, 0.005),
    ]
    column = estimate_column_bounds(observations)
    assert column.min_x == pytest.approx(0.10)
    assert column.max_x == pytest.approx(0.90)
    assert column.min_y == pytest.approx(0.25)
    assert column.max_y == pytest.approx(0.59)

    kept = observations_in_column(observations, column)
    assert [o.text for o in kept] == ["body", "more body"]

    outside = obs("margin", 0.0, 0.5, 0.05, 0.04)
    assert observations_in_column([outside], Rect(0.1, 0.0, 0.8, 1.0)) == []


def test_column_defaults_without_text():
    assert estimate_column_bounds([]) == DEFAULT_COLUMN
