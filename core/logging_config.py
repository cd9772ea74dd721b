# core/logging_config.py

"""
One-time logging setup for the program entry point.

Engine modules only ever call `logging.getLogger(__name__)`; handlers are installed here.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "WARNING") -> None:
    """
    Installs a single stream handler on the root logger.

    Args:
        level (str | int): A logging level name (e.g. "INFO") or numeric level. Unknown names fall back to WARNING.

    Notes:
        - Calling this more than once replaces the handler rather than stacking duplicates.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger()

    for handler in list(root.handlers):
        if getattr(handler, "_scorematrix", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._scorematrix = True  # type: ignore[attr-defined]

    root.addHandler(handler)
    root.setLevel(level)
