"""
Dual-sink logging for the split-flap controller.

Logs to stdout and, when the configured directory is writable, to a log file.
"""

from __future__ import annotations

import logging
from pathlib import Path
import sys

from splitflap.config import LoggingConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "splitflap.log"


def setup_logging(config: LoggingConfig, verbose: bool = False) -> logging.Logger:
    """
    Configure the root logger from the logging section of the config.

    Args:
        config: Level name and log directory.
        verbose: Force DEBUG regardless of the configured level.

    Returns:
        The ``splitflap`` package logger.
    """
    level = logging.DEBUG if verbose else logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    log_path = Path(config.log_dir) / LOG_FILE_NAME
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except OSError as exc:
        print(f"Warning: Could not setup file logging at {log_path}: {exc}", file=sys.stderr)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    logger = logging.getLogger("splitflap")
    logger.setLevel(level)
    return logger


__all__ = ["setup_logging"]
