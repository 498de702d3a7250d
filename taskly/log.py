"""Logging setup for the ``taskly`` logger tree."""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "taskly"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str | int = logging.WARNING,
    log_file: Path | str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``taskly`` logger.

    The terminal board passes ``console=False`` so log lines do not land on
    top of the screen; they go to ``log_file`` instead.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
