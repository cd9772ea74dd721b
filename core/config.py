# core/config.py

"""
Configuration management for the score matrix.

Defaults live in module-level constants. Each one can be overridden with an environment
variable, and a `.env` file in the working directory is loaded first if present.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# Base paths
HOME_DIR = Path.home()
DEFAULT_DATA_DIR = HOME_DIR / "Documents" / "ScoreMatrix"
DEFAULT_SNAPSHOT_NAME = "gradebook.json"
DEFAULT_DATABASE_NAME = "gradebook.db"

# Logging
DEFAULT_LOG_LEVEL = "WARNING"

# Search and reporting
DEFAULT_SEARCH_LIMIT = 30
DEFAULT_HISTOGRAM_BIN_WIDTH = 5
FINAL_DISPLAY_DECIMALS = 4

# Rating buckets used for new gradebooks, highest threshold first
DEFAULT_RATINGS: list[tuple[str, int]] = [
    ("S", 90),
    ("A", 80),
    ("B", 70),
    ("C", 60),
    ("D", 0),
]


def _int_from_env(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = os.getenv(name)

    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw)

    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %d.", name, raw, default)
        return default

    if value < minimum or value > maximum:
        logger.warning(
            "Ignoring %s=%d: must be between %d and %d, using %d.",
            name,
            value,
            minimum,
            maximum,
            default,
        )
        return default

    return value


class Settings:
    """Application settings resolved from the environment."""

    def __init__(self):
        self.data_dir = Path(
            os.path.expanduser(os.getenv("SCOREMATRIX_HOME", str(DEFAULT_DATA_DIR)))
        )
        self.log_level = os.getenv("SCOREMATRIX_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        self.search_limit = _int_from_env(
            "SCOREMATRIX_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT, 1, 10_000
        )
        self.histogram_bin_width = _int_from_env(
            "SCOREMATRIX_HISTOGRAM_BIN_WIDTH", DEFAULT_HISTOGRAM_BIN_WIDTH, 1, 100
        )
        self.default_ratings = list(DEFAULT_RATINGS)

    @property
    def default_snapshot_path(self) -> Path:
        return self.data_dir / DEFAULT_SNAPSHOT_NAME

    @property
    def default_database_path(self) -> Path:
        return self.data_dir / DEFAULT_DATABASE_NAME

    def to_dict(self) -> dict:
        return {
            "data_dir": str(self.data_dir),
            "log_level": self.log_level,
            "search_limit": self.search_limit,
            "histogram_bin_width": self.histogram_bin_width,
            "default_ratings": [list(r) for r in self.default_ratings],
        }


def get_settings() -> Settings:
    return Settings()
