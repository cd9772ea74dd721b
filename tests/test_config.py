# tests/test_config.py

from pathlib import Path

from core.config import (
    DEFAULT_HISTOGRAM_BIN_WIDTH,
    DEFAULT_RATINGS,
    DEFAULT_SEARCH_LIMIT,
    get_settings,
)


def test_default_settings(monkeypatch):
    for name in [
        "SCOREMATRIX_HOME",
        "SCOREMATRIX_LOG_LEVEL",
        "SCOREMATRIX_SEARCH_LIMIT",
        "SCOREMATRIX_HISTOGRAM_BIN_WIDTH",
    ]:
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.log_level == "WARNING"
    assert settings.search_limit == DEFAULT_SEARCH_LIMIT
    assert settings.histogram_bin_width == DEFAULT_HISTOGRAM_BIN_WIDTH
    assert settings.default_ratings == DEFAULT_RATINGS
    assert settings.default_snapshot_path.name == "gradebook.json"


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SCOREMATRIX_HOME", str(tmp_path))
    monkeypatch.setenv("SCOREMATRIX_LOG_LEVEL", "debug")
    monkeypatch.setenv("SCOREMATRIX_SEARCH_LIMIT", "5")
    monkeypatch.setenv("SCOREMATRIX_HISTOGRAM_BIN_WIDTH", "10")

    settings = get_settings()

    assert settings.data_dir == Path(tmp_path)
    assert settings.default_database_path == Path(tmp_path) / "gradebook.db"
    assert settings.log_level == "DEBUG"
    assert settings.search_limit == 5
    assert settings.histogram_bin_width == 10


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("SCOREMATRIX_SEARCH_LIMIT", "lots")
    monkeypatch.setenv("SCOREMATRIX_HISTOGRAM_BIN_WIDTH", "0")

    settings = get_settings()

    assert settings.search_limit == DEFAULT_SEARCH_LIMIT
    assert settings.histogram_bin_width == DEFAULT_HISTOGRAM_BIN_WIDTH


def test_settings_to_dict(monkeypatch, tmp_path):
    monkeypatch.setenv("SCOREMATRIX_HOME", str(tmp_path))

    data = get_settings().to_dict()

    assert data["data_dir"] == str(tmp_path)
    assert data["default_ratings"][0] == ["S", 90]
