# tests/test_formatters.py

from core.formatters import (
    format_banner_text,
    format_final_score,
    format_histogram_bar,
    format_percent,
    format_score_cell,
    format_weight,
)


def test_format_banner_text():
    assert format_banner_text("Hi", 6) == "======\n  Hi  \n======"


def test_format_score_cell():
    assert format_score_cell(None) == ""
    assert format_score_cell(0) == "0"
    assert format_score_cell(15) == "15"


def test_format_final_score():
    assert format_final_score(None) == ""
    assert format_final_score(76.25) == "76.2500"
    assert format_final_score(100.0) == "100.0000"
    assert format_final_score(200 / 3) == "66.6667"


def test_format_percent():
    assert format_percent(1 / 3) == "33.3%"


def test_format_weight():
    assert format_weight(1.5) == "1.5"
    assert format_weight(0.0) == "[EXCLUDED]"


def test_format_histogram_bar():
    assert format_histogram_bar(5, 10, 10) == "#####"
    assert format_histogram_bar(0, 0) == ""
